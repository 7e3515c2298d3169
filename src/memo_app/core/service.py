"""Memo business rules.

``MemoService`` validates every input before touching storage, turns
missing records into ``MemoNotFoundError`` and runs each mutation as one
unit of work on the repository. The repository is trusted to persist and
look up records and does no validation itself.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

import structlog

from memo_app.core.exceptions import MemoNotFoundError, MemoValidationError
from memo_app.core.models import (
    MAX_BULK_UPDATE_SIZE,
    MAX_CONTENT_LENGTH,
    MAX_TITLE_LENGTH,
    BulkPriorityUpdateRequest,
    Memo,
    Priority,
    PriorityStatistics,
)
from memo_app.db.repository import MemoRepository

logger = structlog.get_logger()

SORT_PRIORITY_DESC = "priority_desc"
SORT_PRIORITY_ASC = "priority_asc"

# Scan order for statistics; also the key order of priority_counts.
_STATS_ORDER = (Priority.HIGH, Priority.MEDIUM, Priority.LOW, Priority.NONE)


class MemoService:
    def __init__(self, repository: MemoRepository) -> None:
        self._repository = repository

    # --- Reads ---

    def list(self) -> list[Memo]:
        return self._repository.find_all()

    def get_by_id(self, memo_id: int | None) -> Memo:
        _validate_memo_id(memo_id)
        memo = self._repository.find_by_id(memo_id)
        if memo is None:
            raise MemoNotFoundError(memo_id)
        return memo

    def exists(self, memo_id: int | None) -> bool:
        _validate_memo_id(memo_id)
        return self._repository.exists_by_id(memo_id)

    def filter_by_priority(self, priorities: Iterable[Priority | None] | None) -> list[Memo]:
        """Memos with any of ``priorities``, highest priority then newest first.

        ``None`` entries and duplicates are dropped. An empty or missing
        filter returns every memo unfiltered.
        """
        if not priorities:
            return self.list()

        wanted = list(dict.fromkeys(p for p in priorities if p is not None))
        if not wanted:
            raise MemoValidationError("At least one valid priority must be specified")

        return self._repository.find_by_priorities(wanted)

    def sort_by_priority(self, order: str | None) -> list[Memo]:
        if not order:
            return self.list()

        normalized = order.lower()
        if normalized == SORT_PRIORITY_DESC:
            return self._repository.find_all_ordered_by_priority(descending=True)
        if normalized == SORT_PRIORITY_ASC:
            return self._repository.find_all_ordered_by_priority(descending=False)
        raise MemoValidationError(
            f"Invalid sort order. Use '{SORT_PRIORITY_DESC}' or '{SORT_PRIORITY_ASC}'",
            field="sort",
            rejected_value=order,
        )

    def priority_statistics(self) -> PriorityStatistics:
        counts = {p: self._repository.count_by_priority(p) for p in _STATS_ORDER}
        total = sum(counts.values())

        # Ties go to the higher priority.
        most_common = Priority.NONE
        best = 0
        for priority in _STATS_ORDER:
            if counts[priority] > best:
                most_common, best = priority, counts[priority]

        return PriorityStatistics(
            priority_counts=counts,
            total_memos=total,
            most_common_priority=most_common,
        )

    # --- Mutations ---

    def create(self, memo: Memo | None) -> Memo:
        _validate_memo(memo)
        new_memo = replace(
            memo,
            id=None,
            title=memo.title.strip(),
            priority=memo.priority if memo.priority is not None else Priority.NONE,
        )

        with self._repository.transaction():
            saved = self._repository.save(new_memo)

        logger.info("memo_created", memo_id=saved.id, priority=str(saved.priority))
        return saved

    def update(self, memo_id: int | None, memo: Memo | None) -> Memo:
        _validate_memo_id(memo_id)
        _validate_memo(memo)

        with self._repository.transaction():
            existing = self.get_by_id(memo_id)
            existing.title = memo.title.strip()
            existing.content = memo.content
            existing.priority = memo.priority if memo.priority is not None else Priority.NONE
            saved = self._repository.save(existing)

        logger.info("memo_updated", memo_id=saved.id)
        return saved

    def delete(self, memo_id: int | None) -> None:
        _validate_memo_id(memo_id)

        with self._repository.transaction():
            if not self._repository.exists_by_id(memo_id):
                raise MemoNotFoundError(memo_id)
            self._repository.delete_by_id(memo_id)

        logger.info("memo_deleted", memo_id=memo_id)

    def update_priority(self, memo_id: int | None, priority: Priority | None) -> Memo:
        _validate_memo_id(memo_id)
        if priority is None:
            raise MemoValidationError("Priority cannot be null", field="priority")

        with self._repository.transaction():
            existing = self.get_by_id(memo_id)
            existing.priority = priority
            saved = self._repository.save(existing)

        logger.info("memo_priority_updated", memo_id=saved.id, priority=str(priority))
        return saved

    def bulk_update_priority(self, request: BulkPriorityUpdateRequest | None) -> list[Memo]:
        """Set one priority on many memos, all or nothing.

        Every id is checked before anything is written; the first missing id
        aborts the whole request with ``MemoNotFoundError``.
        """
        if request is None:
            raise MemoValidationError("Bulk update request cannot be null")

        memo_ids = request.memo_ids
        if not memo_ids:
            raise MemoValidationError("Memo IDs cannot be empty")
        if len(memo_ids) > MAX_BULK_UPDATE_SIZE:
            raise MemoValidationError(
                f"Cannot update more than {MAX_BULK_UPDATE_SIZE} memos at once"
            )
        if request.priority is None:
            raise MemoValidationError("Priority cannot be null", field="priority")

        with self._repository.transaction():
            for memo_id in memo_ids:
                _validate_memo_id(memo_id)
                if not self._repository.exists_by_id(memo_id):
                    raise MemoNotFoundError(memo_id)

            memos = self._repository.find_all_by_ids(memo_ids)
            for memo in memos:
                memo.priority = request.priority
            saved = self._repository.save_all(memos)

        logger.info(
            "memo_priority_bulk_updated",
            count=len(saved),
            priority=str(request.priority),
        )
        return saved


def _validate_memo_id(memo_id: int | None) -> None:
    if memo_id is None:
        raise MemoValidationError("Memo ID cannot be null", field="id", rejected_value=memo_id)
    if memo_id <= 0:
        raise MemoValidationError(
            "Memo ID must be a positive number", field="id", rejected_value=memo_id
        )


def _validate_memo(memo: Memo | None) -> None:
    if memo is None:
        raise MemoValidationError("Memo cannot be null")
    _validate_title(memo.title)
    _validate_content(memo.content)


def _validate_title(title: str | None) -> None:
    if title is None or not title.strip():
        raise MemoValidationError(
            "Memo title cannot be null or empty", field="title", rejected_value=title
        )
    if len(title.strip()) > MAX_TITLE_LENGTH:
        raise MemoValidationError(
            f"Memo title cannot exceed {MAX_TITLE_LENGTH} characters",
            field="title",
            rejected_value=title,
        )


def _validate_content(content: str | None) -> None:
    if content is not None and len(content) > MAX_CONTENT_LENGTH:
        raise MemoValidationError(
            f"Memo content cannot exceed {MAX_CONTENT_LENGTH:,} characters",
            field="content",
            rejected_value=content,
        )
