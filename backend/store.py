"""
Record store for focus sessions and todos.

Core operations receive a ``RecordStore`` explicitly; the API wires in a
``SqlRecordStore`` bound to the request's SQLModel session, tests can pass an
in-memory fake. Every query is scoped by owner id.
"""
from __future__ import annotations

import functools
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterator, Optional, Protocol

from fastapi import Depends
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from db import get_session
from models import FocusSession, TodoItem, as_utc, exact_minutes, utcnow
from results import StorageError


@dataclass(frozen=True)
class SessionFilter:
    completed: Optional[bool] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None


@dataclass(frozen=True)
class DayAggregate:
    day: date
    count: int
    minutes: float


def local_date(dt: datetime, tz: tzinfo) -> date:
    return as_utc(dt).astimezone(tz).date()


def aggregate_by_day(rows, tz: tzinfo) -> list[DayAggregate]:
    """Fold (started_at, ended_at) pairs into per-date count and minutes."""
    counts: dict[date, int] = defaultdict(int)
    minutes: dict[date, float] = defaultdict(float)
    for started_at, ended_at in rows:
        day = local_date(started_at, tz)
        counts[day] += 1
        minutes[day] += exact_minutes(started_at, ended_at)
    return [DayAggregate(day=d, count=counts[d], minutes=minutes[d]) for d in sorted(counts)]


class RecordStore(Protocol):
    def transaction(self): ...

    # sessions
    def insert_session(self, record: FocusSession) -> FocusSession: ...
    def get_session_by_id(self, owner: str, session_id: str) -> Optional[FocusSession]: ...
    def list_sessions(self, owner: str, limit: Optional[int] = None) -> list[FocusSession]: ...
    def update_session(self, record: FocusSession, fields: dict) -> FocusSession: ...
    def delete_session(self, record: FocusSession) -> None: ...
    def count_sessions(self, owner: str, filt: SessionFilter) -> int: ...
    def sum_duration(self, owner: str, filt: SessionFilter) -> Optional[float]: ...
    def group_by_day(
        self,
        owner: str,
        window_days: Optional[int],
        completed_only: bool,
        now: datetime,
        tz: tzinfo,
    ) -> list[DayAggregate]: ...
    def distinct_completed_dates(self, owner: str, tz: tzinfo) -> list[date]: ...

    # todos
    def lock_todos(self, owner: str) -> None: ...
    def list_todos(self, owner: str) -> list[TodoItem]: ...
    def get_todo(self, owner: str, todo_id: str) -> Optional[TodoItem]: ...
    def delete_all_todos(self, owner: str) -> None: ...
    def insert_todo(self, owner: str, item: dict, position: int) -> TodoItem: ...
    def update_todo_fields(self, record: TodoItem, fields: dict) -> TodoItem: ...
    def delete_todo(self, record: TodoItem) -> None: ...
    def reindex_todos(self, owner: str) -> None: ...


def _wrap_errors(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    return wrapper


class SqlRecordStore:
    """RecordStore backed by a SQLModel session. Writes flush; transaction() commits."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator["SqlRecordStore"]:
        try:
            yield self
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            self.db.rollback()
            raise

    # --- sessions ---

    def _session_filters(self, owner: str, filt: SessionFilter) -> list:
        clauses = [FocusSession.user_id == owner]
        if filt.completed is not None:
            clauses.append(FocusSession.completed == filt.completed)
        if filt.since is not None:
            clauses.append(FocusSession.started_at >= as_utc(filt.since))
        if filt.until is not None:
            clauses.append(FocusSession.started_at < as_utc(filt.until))
        return clauses

    @_wrap_errors
    def insert_session(self, record: FocusSession) -> FocusSession:
        self.db.add(record)
        self.db.flush()
        return record

    @_wrap_errors
    def get_session_by_id(self, owner: str, session_id: str) -> Optional[FocusSession]:
        statement = select(FocusSession).where(
            FocusSession.id == session_id, FocusSession.user_id == owner
        )
        return self.db.exec(statement).one_or_none()

    @_wrap_errors
    def list_sessions(self, owner: str, limit: Optional[int] = None) -> list[FocusSession]:
        statement = (
            select(FocusSession)
            .where(FocusSession.user_id == owner)
            .order_by(FocusSession.created_at.desc())
        )
        if limit:
            statement = statement.limit(limit)
        return list(self.db.exec(statement).all())

    @_wrap_errors
    def update_session(self, record: FocusSession, fields: dict) -> FocusSession:
        for name, value in fields.items():
            setattr(record, name, value)
        self.db.add(record)
        self.db.flush()
        return record

    @_wrap_errors
    def delete_session(self, record: FocusSession) -> None:
        self.db.delete(record)
        self.db.flush()

    @_wrap_errors
    def count_sessions(self, owner: str, filt: SessionFilter) -> int:
        statement = select(func.count(FocusSession.id)).where(*self._session_filters(owner, filt))
        return self.db.exec(statement).one()

    @_wrap_errors
    def sum_duration(self, owner: str, filt: SessionFilter) -> Optional[float]:
        """Summed minutes, or None when nothing matched (like SQL SUM)."""
        statement = select(FocusSession.started_at, FocusSession.ended_at).where(
            *self._session_filters(owner, filt)
        )
        rows = self.db.exec(statement).all()
        if not rows:
            return None
        return sum(exact_minutes(started_at, ended_at) for started_at, ended_at in rows)

    @_wrap_errors
    def group_by_day(
        self,
        owner: str,
        window_days: Optional[int],
        completed_only: bool,
        now: datetime,
        tz: tzinfo,
    ) -> list[DayAggregate]:
        # calendar dates come from the stats timezone, never the database
        filt = SessionFilter(
            completed=True if completed_only else None,
            since=now - timedelta(days=window_days) if window_days else None,
        )
        statement = select(FocusSession.started_at, FocusSession.ended_at).where(
            *self._session_filters(owner, filt)
        )
        return aggregate_by_day(self.db.exec(statement).all(), tz)

    @_wrap_errors
    def distinct_completed_dates(self, owner: str, tz: tzinfo) -> list[date]:
        statement = select(FocusSession.started_at).where(
            FocusSession.user_id == owner, FocusSession.completed == True  # noqa: E712
        )
        days = {local_date(started_at, tz) for started_at in self.db.exec(statement).all()}
        return sorted(days, reverse=True)

    # --- todos ---

    @_wrap_errors
    def lock_todos(self, owner: str) -> None:
        """
        Serialize todo writers for one owner until the transaction ends.

        Postgres takes a transaction-scoped advisory lock keyed by owner, which
        also covers an owner with no rows yet. Other databases lock the owner's
        rows; SQLite ignores FOR UPDATE and relies on its single writer.
        """
        if self.db.get_bind().dialect.name == "postgresql":
            self.db.connection().execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:owner))"), {"owner": owner}
            )
            return
        self.db.exec(select(TodoItem.id).where(TodoItem.user_id == owner).with_for_update()).all()

    @_wrap_errors
    def list_todos(self, owner: str, for_update: bool = False) -> list[TodoItem]:
        statement = (
            select(TodoItem)
            .where(TodoItem.user_id == owner)
            .order_by(TodoItem.position.asc(), TodoItem.id.asc())
        )
        if for_update:
            statement = statement.with_for_update()
        return list(self.db.exec(statement).all())

    @_wrap_errors
    def get_todo(self, owner: str, todo_id: str) -> Optional[TodoItem]:
        statement = (
            select(TodoItem)
            .where(TodoItem.todo_id == todo_id, TodoItem.user_id == owner)
            .with_for_update()
        )
        return self.db.exec(statement).one_or_none()

    @_wrap_errors
    def delete_all_todos(self, owner: str) -> None:
        for todo in self.db.exec(
            select(TodoItem).where(TodoItem.user_id == owner).with_for_update()
        ).all():
            self.db.delete(todo)
        self.db.flush()

    @_wrap_errors
    def insert_todo(self, owner: str, item: dict, position: int) -> TodoItem:
        todo = TodoItem(
            user_id=owner,
            todo_id=item["id"],
            text=item["text"],
            completed=item.get("completed", False),
            recorded_in_stats=item.get("recorded_in_stats", False),
            position=position,
        )
        self.db.add(todo)
        self.db.flush()
        return todo

    @_wrap_errors
    def update_todo_fields(self, record: TodoItem, fields: dict) -> TodoItem:
        for name, value in fields.items():
            setattr(record, name, value)
        record.updated_at = utcnow()
        self.db.add(record)
        self.db.flush()
        return record

    @_wrap_errors
    def delete_todo(self, record: TodoItem) -> None:
        self.db.delete(record)
        self.db.flush()

    @_wrap_errors
    def reindex_todos(self, owner: str) -> None:
        for position, todo in enumerate(self.list_todos(owner, for_update=True)):
            if todo.position != position:
                todo.position = position
                todo.updated_at = utcnow()
                self.db.add(todo)
        self.db.flush()


def get_store(db: Session = Depends(get_session)) -> SqlRecordStore:
    return SqlRecordStore(db)
