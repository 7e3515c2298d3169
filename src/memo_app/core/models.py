"""Domain models for Memo App."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from memo_app.core.exceptions import InvalidPriorityError

MAX_TITLE_LENGTH = 255
MAX_CONTENT_LENGTH = 10_000
MAX_BULK_UPDATE_SIZE = 100


class Priority(str, Enum):
    """Priority level for a memo, ordered NONE < LOW < MEDIUM < HIGH."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NONE = "NONE"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, value: str | None) -> Priority:
        """Parse a priority name case-insensitively.

        ``None`` maps to ``NONE``; any other unknown value raises
        ``InvalidPriorityError``.
        """
        if value is None:
            return cls.NONE
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            member = cls.__members__.get(value.upper())
            if member is not None:
                return member
        raise InvalidPriorityError(value)

    def __str__(self) -> str:
        return self.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank >= other.rank


_RANKS = {
    Priority.NONE: 0,
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
}


@dataclass
class Memo:
    """A note with a title, optional content and a priority.

    ``id``, ``created_at`` and ``updated_at`` are assigned by storage.
    """

    title: str | None
    content: str | None = None
    priority: Priority | None = Priority.NONE
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None


@dataclass
class BulkPriorityUpdateRequest:
    memo_ids: list[int] | None
    priority: Priority | None


@dataclass
class PriorityStatistics:
    priority_counts: dict[Priority, int] = field(default_factory=dict)
    total_memos: int = 0
    most_common_priority: Priority = Priority.NONE
