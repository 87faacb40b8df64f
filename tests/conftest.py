"""Shared test fixtures for the Focus Flow backend.

- FakeStore: in-memory RecordStore with snapshot transactions and
  fault injection on the N-th todo insert or on re-indexing
- sql_store: SqlRecordStore on a private in-memory SQLite database
- client: FastAPI TestClient wired to that database
- add_session: helper to seed sessions N days before a fixed NOW
"""

from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from db import get_session, init_db
from models import FocusSession, TodoItem, as_utc
from results import StorageError
from store import SessionFilter, SqlRecordStore, aggregate_by_day, local_date

# Wednesday afternoon; sessions seeded at 09:00 on "days ago" dates fall
# cleanly into the 7-day trend windows (days 0-6 current, 7-13 previous).
NOW = datetime(2026, 10, 14, 18, 0, tzinfo=timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# In-memory store
# ─────────────────────────────────────────────────────────────────────────────


def _clone(record):
    return type(record)(**record.model_dump())


class FakeStore:
    """Dict/list backed RecordStore. transaction() restores a snapshot on error."""

    def __init__(self, fail_on_insert: Optional[int] = None, fail_on_reindex: bool = False):
        self.sessions: dict[str, FocusSession] = {}
        self.todos: list[TodoItem] = []
        self.fail_on_insert = fail_on_insert
        self.fail_on_reindex = fail_on_reindex
        self.insert_calls = 0
        self.calls: list[str] = []

    @contextmanager
    def transaction(self):
        sessions = {k: _clone(v) for k, v in self.sessions.items()}
        todos = [_clone(t) for t in self.todos]
        try:
            yield self
        except Exception:
            self.sessions, self.todos = sessions, todos
            raise

    # sessions

    def _matching(self, owner: str, filt: SessionFilter):
        for s in self.sessions.values():
            if s.user_id != owner:
                continue
            if filt.completed is not None and s.completed != filt.completed:
                continue
            if filt.since is not None and as_utc(s.started_at) < as_utc(filt.since):
                continue
            if filt.until is not None and as_utc(s.started_at) >= as_utc(filt.until):
                continue
            yield s

    def insert_session(self, record):
        self.calls.append("insert_session")
        self.sessions[record.id] = record
        return record

    def get_session_by_id(self, owner, session_id):
        self.calls.append("get_session_by_id")
        record = self.sessions.get(session_id)
        return record if record is not None and record.user_id == owner else None

    def list_sessions(self, owner, limit=None):
        rows = sorted(
            self._matching(owner, SessionFilter()), key=lambda s: s.created_at, reverse=True
        )
        return rows[:limit] if limit else rows

    def update_session(self, record, fields):
        self.calls.append("update_session")
        for name, value in fields.items():
            setattr(record, name, value)
        return record

    def delete_session(self, record):
        self.calls.append("delete_session")
        del self.sessions[record.id]

    def count_sessions(self, owner, filt):
        return sum(1 for _ in self._matching(owner, filt))

    def sum_duration(self, owner, filt):
        rows = list(self._matching(owner, filt))
        if not rows:
            return None
        return sum((as_utc(s.ended_at) - as_utc(s.started_at)).total_seconds() / 60 for s in rows)

    def group_by_day(self, owner, window_days, completed_only, now, tz):
        filt = SessionFilter(
            completed=True if completed_only else None,
            since=now - timedelta(days=window_days) if window_days else None,
        )
        return aggregate_by_day(
            [(s.started_at, s.ended_at) for s in self._matching(owner, filt)], tz
        )

    def distinct_completed_dates(self, owner, tz):
        days = {local_date(s.started_at, tz) for s in self._matching(owner, SessionFilter(True))}
        return sorted(days, reverse=True)

    # todos

    def lock_todos(self, owner):
        self.calls.append("lock_todos")

    def list_todos(self, owner):
        return sorted((t for t in self.todos if t.user_id == owner), key=lambda t: t.position)

    def get_todo(self, owner, todo_id):
        self.calls.append("get_todo")
        for t in self.todos:
            if t.user_id == owner and t.todo_id == todo_id:
                return t
        return None

    def delete_all_todos(self, owner):
        self.calls.append("delete_all_todos")
        self.todos = [t for t in self.todos if t.user_id != owner]

    def insert_todo(self, owner, item, position):
        self.insert_calls += 1
        if self.fail_on_insert is not None and self.insert_calls == self.fail_on_insert:
            raise StorageError(f"injected failure on insert #{self.insert_calls}")
        todo = TodoItem(
            user_id=owner,
            todo_id=item["id"],
            text=item["text"],
            completed=item.get("completed", False),
            recorded_in_stats=item.get("recorded_in_stats", False),
            position=position,
        )
        self.todos.append(todo)
        return todo

    def update_todo_fields(self, record, fields):
        for name, value in fields.items():
            setattr(record, name, value)
        return record

    def delete_todo(self, record):
        self.calls.append("delete_todo")
        self.todos.remove(record)

    def reindex_todos(self, owner):
        self.calls.append("reindex_todos")
        if self.fail_on_reindex:
            raise StorageError("injected failure while re-indexing")
        for position, todo in enumerate(self.list_todos(owner)):
            todo.position = position


# ─────────────────────────────────────────────────────────────────────────────
# Owners
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def owner() -> str:
    return "user_a"


@pytest.fixture
def other_owner() -> str:
    return "user_b"


# ─────────────────────────────────────────────────────────────────────────────
# Stores
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine) -> Generator[SqlRecordStore, None, None]:
    with Session(engine) as db:
        yield SqlRecordStore(db)


@pytest.fixture
def client(engine):
    """TestClient whose requests use the in-memory database."""
    from fastapi.testclient import TestClient

    from main import app

    def _override():
        with Session(engine) as db:
            yield db

    app.dependency_overrides[get_session] = _override
    yield TestClient(app)
    app.dependency_overrides.clear()


# ─────────────────────────────────────────────────────────────────────────────
# Session seeding
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def add_session():
    """Insert a session ``days_ago`` calendar days before NOW, at 09:00 UTC."""
    counter = {"n": 0}

    def _add(store, owner, days_ago=0, minutes=25, completed=True, hour=9):
        counter["n"] += 1
        start = (NOW - timedelta(days=days_ago)).replace(hour=hour, minute=0)
        record = FocusSession(
            id=f"s{counter['n']}",
            user_id=owner,
            label="Focus",
            started_at=start,
            ended_at=start + timedelta(minutes=minutes),
            completed=completed,
            created_at=start,
        )
        with store.transaction():
            store.insert_session(record)
        return record

    return _add
