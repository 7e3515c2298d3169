import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("STORAGE_BACKEND", "memory")

from memo_app.api.main import app, get_memo_service  # noqa: E402
from memo_app.core.models import Memo, Priority  # noqa: E402
from memo_app.core.service import MemoService  # noqa: E402
from memo_app.db.repository import InMemoryMemoRepository, get_repository  # noqa: E402


class TickingClock:
    """Returns a timestamp one minute later on every call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def repository(clock):
    return InMemoryMemoRepository(clock=clock)


@pytest.fixture
def service(repository):
    return MemoService(repository)


@pytest.fixture
def seeded(repository):
    """Five memos, saved in this order (so the last one is newest)."""
    specs = [
        ("Groceries", Priority.LOW),
        ("Quarterly report", Priority.HIGH),
        ("Call the plumber", Priority.MEDIUM),
        ("Random thought", Priority.NONE),
        ("Release checklist", Priority.HIGH),
    ]
    return [
        repository.save(Memo(title=title, content=f"{title} notes", priority=priority))
        for title, priority in specs
    ]


@pytest.fixture
def client(repository):
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_memo_service] = lambda: MemoService(repository)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
