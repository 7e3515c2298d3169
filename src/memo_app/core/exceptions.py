"""Domain errors raised by the memo service."""

from __future__ import annotations

from typing import Any


class MemoError(Exception):
    """Base class for memo domain errors."""


class MemoNotFoundError(MemoError):
    """A lookup, update, delete or priority change targeted a missing memo."""

    def __init__(self, memo_id: int, message: str | None = None) -> None:
        super().__init__(message or f"Memo with id {memo_id} not found")
        self.memo_id = memo_id


class MemoValidationError(MemoError):
    """Input rejected by the memo business rules.

    ``field`` and ``rejected_value`` are optional and are passed through to
    the error response when set.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        rejected_value: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.rejected_value = rejected_value


class InvalidPriorityError(MemoValidationError, ValueError):
    """A string could not be parsed as a Priority."""

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"Invalid priority value: {value}",
            field="priority",
            rejected_value=value,
        )
