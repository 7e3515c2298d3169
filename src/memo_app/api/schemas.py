"""Pydantic request/response schemas for Memo App API.

Field names are camelCase on the wire; snake_case is accepted on input too.
Priorities arrive as plain strings and are parsed with ``Priority.parse`` in
the routes, so a bad value surfaces as a memo validation error.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from memo_app.core.models import Memo, Priority


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _CamelReadModel(_CamelModel):
    model_config = ConfigDict(from_attributes=True)


class MemoRequest(_CamelModel):
    id: int | None = None
    title: str | None = None
    content: str | None = None
    priority: str | None = None

    def to_memo(self) -> Memo:
        return Memo(
            id=self.id,
            title=self.title,
            content=self.content,
            priority=Priority.parse(self.priority),
        )


class PriorityUpdateRequest(_CamelModel):
    priority: str | None = None


class BulkPriorityUpdateBody(_CamelModel):
    memo_ids: list[int] | None = None
    priority: str | None = None


class MemoResponse(_CamelReadModel):
    id: int
    title: str
    content: str | None
    priority: Priority
    created_at: datetime | None
    updated_at: datetime | None


class PriorityStatisticsResponse(_CamelReadModel):
    priority_counts: dict[Priority, int]
    total_memos: int
    most_common_priority: Priority


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str


class ErrorResponse(_CamelModel):
    timestamp: datetime
    status: int
    error: str
    message: str
    path: str
    memo_id: int | None = None
    field: str | None = None
    rejected_value: Any = None
