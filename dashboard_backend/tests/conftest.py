import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from src.api.errors import RecordStoreError  # noqa: E402
from src.api.events import event_from_row  # noqa: E402
from src.api.goals import goal_from_row  # noqa: E402
from src.api.main import app  # noqa: E402
from src.api.models import EVENTS_TABLE, GOALS_TABLE  # noqa: E402
from src.api.repositories import InMemoryRecordStore, get_record_store  # noqa: E402
from src.api.sessions import DashboardSession, SessionRegistry, get_session_registry  # noqa: E402


class FlakyRecordStore(InMemoryRecordStore):
    """In-memory store whose reads and writes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False
        self.fail_reads = False
        self.writes = 0

    def _write(self, op: str) -> None:
        if self.fail_writes:
            raise RecordStoreError(f"{op} failed (simulated outage)")
        self.writes += 1

    def select(self, table, owner, newest_first=True):
        if self.fail_reads:
            raise RecordStoreError("select failed (simulated outage)")
        return super().select(table, owner, newest_first)

    def insert(self, table, owner, info):
        self._write("insert")
        return super().insert(table, owner, info)

    def update(self, table, record_id, owner, info):
        self._write("update")
        return super().update(table, record_id, owner, info)

    def delete(self, table, record_id, owner):
        self._write("delete")
        return super().delete(table, record_id, owner)


@pytest.fixture
def store():
    return FlakyRecordStore()


@pytest.fixture
def session(store):
    s = DashboardSession("alice", store, mailbox_ttl_ms=100)
    s.load()
    return s


@pytest.fixture
def registry(store):
    return SessionRegistry(store, mailbox_ttl_ms=100)


@pytest.fixture
def client(store, registry):
    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_session_registry] = lambda: registry
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def assert_synced(store):
    """Check that a session's caches hold exactly what the store holds, in order."""

    def _check(s):
        goals = [goal_from_row(r) for r in store.select(GOALS_TABLE, s.user_id, newest_first=True)]
        events = [event_from_row(r) for r in store.select(EVENTS_TABLE, s.user_id, newest_first=False)]
        assert [(g.id, g.info) for g in s.goals.goals()] == [(g.id, g.info) for g in goals]
        assert [(e.id, e.info) for e in s.events.events()] == [(e.id, e.info) for e in events]

    return _check
