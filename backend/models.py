from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

DEFAULT_LABEL = "Completed Pomodoro"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes (SQLite drops tzinfo) are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def exact_minutes(started_at: datetime, ended_at: datetime) -> float:
    return (as_utc(ended_at) - as_utc(started_at)).total_seconds() / 60


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def duration_minutes(started_at: datetime, ended_at: datetime) -> int:
    """Whole minutes between two timestamps, halves rounded away from zero."""
    return round_half_up(exact_minutes(started_at, ended_at))


class FocusSession(SQLModel, table=True):
    id: str = Field(primary_key=True, index=True)
    user_id: str = Field(index=True)
    label: str = DEFAULT_LABEL
    started_at: datetime = Field(index=True)
    ended_at: datetime
    completed: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def duration(self) -> int:
        return duration_minutes(self.started_at, self.ended_at)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "label": self.label,
            "started_at": as_utc(self.started_at),
            "ended_at": as_utc(self.ended_at),
            "completed": self.completed,
            "created_at": as_utc(self.created_at),
            "duration": self.duration,
        }


class TodoItem(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "todo_id", name="uq_todo_user_todo_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    todo_id: str
    text: str
    completed: bool = False
    recorded_in_stats: bool = False
    position: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_dict(self) -> dict:
        """Client-facing shape: the client id is exposed as ``id``."""
        return {
            "id": self.todo_id,
            "text": self.text,
            "completed": self.completed,
            "recorded_in_stats": self.recorded_in_stats,
        }
