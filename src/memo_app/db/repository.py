"""Storage port for memos and its in-memory implementation."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Protocol

import structlog

from memo_app.config import get_settings
from memo_app.core.models import Memo, Priority

logger = structlog.get_logger()


class MemoRepository(Protocol):
    """Persistence operations the memo service relies on.

    Implementations do exact-match lookups and persistence only; they do no
    validation of their own.
    """

    def find_all(self) -> list[Memo]: ...

    def find_by_id(self, memo_id: int) -> Memo | None: ...

    def find_all_by_ids(self, memo_ids: Iterable[int]) -> list[Memo]: ...

    def exists_by_id(self, memo_id: int) -> bool: ...

    def find_by_priorities(self, priorities: Iterable[Priority]) -> list[Memo]:
        """Memos whose priority is in ``priorities``, highest priority then newest first."""
        ...

    def find_all_ordered_by_priority(self, descending: bool = True) -> list[Memo]:
        """All memos ordered by priority, newest first within a priority."""
        ...

    def count_by_priority(self, priority: Priority) -> int: ...

    def count(self) -> int: ...

    def save(self, memo: Memo) -> Memo:
        """Insert a memo without an id, or update the stored one.

        Storage assigns ``id`` and ``created_at`` on insert and refreshes
        ``updated_at`` on every save.
        """
        ...

    def save_all(self, memos: Iterable[Memo]) -> list[Memo]: ...

    def delete_by_id(self, memo_id: int) -> None: ...

    def transaction(self) -> AbstractContextManager[None]:
        """Group calls into one unit of work, rolled back on error."""
        ...

    def health_check(self) -> bool: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _priority_order(memos: Iterable[Memo], descending: bool) -> list[Memo]:
    newest_first = sorted(memos, key=lambda m: (m.created_at, m.id), reverse=True)
    return sorted(newest_first, key=lambda m: m.priority.rank, reverse=descending)


class InMemoryMemoRepository:
    """Dict-backed repository for tests and local runs.

    Memos are copied on the way in and out so callers never share state with
    the store. ``clock`` supplies timestamps.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._memos: dict[int, Memo] = {}
        self._next_id = 1
        self._in_transaction = False

    def find_all(self) -> list[Memo]:
        return [replace(m) for m in self._memos.values()]

    def find_by_id(self, memo_id: int) -> Memo | None:
        memo = self._memos.get(memo_id)
        return replace(memo) if memo is not None else None

    def find_all_by_ids(self, memo_ids: Iterable[int]) -> list[Memo]:
        wanted = set(memo_ids)
        return [replace(m) for m in self._memos.values() if m.id in wanted]

    def exists_by_id(self, memo_id: int) -> bool:
        return memo_id in self._memos

    def find_by_priorities(self, priorities: Iterable[Priority]) -> list[Memo]:
        wanted = set(priorities)
        matching = [replace(m) for m in self._memos.values() if m.priority in wanted]
        return _priority_order(matching, descending=True)

    def find_all_ordered_by_priority(self, descending: bool = True) -> list[Memo]:
        return _priority_order(self.find_all(), descending=descending)

    def count_by_priority(self, priority: Priority) -> int:
        return sum(1 for m in self._memos.values() if m.priority == priority)

    def count(self) -> int:
        return len(self._memos)

    def save(self, memo: Memo) -> Memo:
        now = self._clock()
        stored = replace(memo, priority=memo.priority or Priority.NONE, updated_at=now)
        existing = self._memos.get(memo.id) if memo.id is not None else None
        if existing is None:
            if stored.id is None:
                stored.id = self._next_id
            self._next_id = max(self._next_id, stored.id + 1)
            stored.created_at = now
        else:
            stored.created_at = existing.created_at
        self._memos[stored.id] = stored
        return replace(stored)

    def save_all(self, memos: Iterable[Memo]) -> list[Memo]:
        return [self.save(m) for m in memos]

    def delete_by_id(self, memo_id: int) -> None:
        self._memos.pop(memo_id, None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._in_transaction:
            yield
            return
        snapshot = {k: replace(v) for k, v in self._memos.items()}
        next_id = self._next_id
        self._in_transaction = True
        try:
            yield
        except Exception:
            self._memos = snapshot
            self._next_id = next_id
            logger.debug("in_memory_transaction_rolled_back")
            raise
        finally:
            self._in_transaction = False

    def health_check(self) -> bool:
        return True


_repository: MemoRepository | None = None


def get_repository() -> MemoRepository:
    """Return the process-wide repository for the configured backend."""
    global _repository
    if _repository is None:
        backend = get_settings().storage_backend
        if backend == "memory":
            _repository = InMemoryMemoRepository()
        else:
            from memo_app.db.postgres import PostgresMemoRepository

            _repository = PostgresMemoRepository()
        logger.info("memo_repository_initialized", backend=backend)
    return _repository
