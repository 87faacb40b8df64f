"""
Focus session writes: label/time defaulting and the derived duration.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from models import DEFAULT_LABEL, FocusSession, as_utc, utcnow
from results import (
    Ok,
    Result,
    from_validation_error,
    invalid,
    not_found,
    storage_guarded,
    unauthenticated,
)
from store import RecordStore

FOCUS_INTERVAL = timedelta(minutes=25)


class SessionFields(BaseModel):
    # label stays loose: anything that is not a non-empty string becomes the default
    label: Any = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    completed: Optional[bool] = None


def normalize_label(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_LABEL


def _end_before_start(started_at: datetime, ended_at: datetime) -> bool:
    return as_utc(ended_at) < as_utc(started_at)


@storage_guarded
def create_session(
    store: RecordStore,
    owner: Optional[str],
    label: Any = None,
    started_at: Optional[datetime] = None,
    ended_at: Optional[datetime] = None,
    completed: Optional[bool] = None,
    *,
    now: Optional[datetime] = None,
) -> Result[dict]:
    """
    Record a focus session. Start defaults to now, end to start + 25 minutes.
    Returns the stored session with its ``duration`` in minutes.
    """
    if not owner:
        return unauthenticated()
    try:
        fields = SessionFields(
            label=label, started_at=started_at, ended_at=ended_at, completed=completed
        )
    except ValidationError as e:
        return from_validation_error(e)

    start = as_utc(fields.started_at or now or utcnow())
    end = as_utc(fields.ended_at) if fields.ended_at else start + FOCUS_INTERVAL
    if _end_before_start(start, end):
        return invalid("ended_at must not be before started_at")

    record = FocusSession(
        id=str(uuid.uuid4()),
        user_id=owner,
        label=normalize_label(fields.label),
        started_at=start,
        ended_at=end,
        completed=bool(fields.completed),
    )
    with store.transaction():
        store.insert_session(record)
        return Ok(record.to_dict())


@storage_guarded
def list_sessions(store: RecordStore, owner: Optional[str], limit: Optional[int] = None) -> Result[list]:
    """Sessions for this owner, newest first."""
    if not owner:
        return unauthenticated()
    if limit is not None and limit < 0:
        return invalid("limit must not be negative")
    return Ok([s.to_dict() for s in store.list_sessions(owner, limit)])


@storage_guarded
def update_session(
    store: RecordStore, owner: Optional[str], session_id: str, patch: Mapping[str, Any]
) -> Result[dict]:
    """Apply only the fields present in ``patch``; others keep their stored values."""
    if not owner:
        return unauthenticated()
    try:
        fields = SessionFields.model_validate(dict(patch))
    except ValidationError as e:
        return from_validation_error(e)

    changes = fields.model_dump(exclude_unset=True, exclude_none=True)
    if "label" in changes:
        changes["label"] = normalize_label(changes["label"])
    for name in ("started_at", "ended_at"):
        if name in changes:
            changes[name] = as_utc(changes[name])

    with store.transaction():
        record = store.get_session_by_id(owner, session_id)
        if record is None:
            return not_found("Session")
        start = changes.get("started_at", record.started_at)
        end = changes.get("ended_at", record.ended_at)
        if _end_before_start(start, end):
            return invalid("ended_at must not be before started_at")
        if changes:
            store.update_session(record, changes)
        return Ok(record.to_dict())


@storage_guarded
def delete_session(store: RecordStore, owner: Optional[str], session_id: str) -> Result[dict]:
    if not owner:
        return unauthenticated()
    with store.transaction():
        record = store.get_session_by_id(owner, session_id)
        if record is None:
            return not_found("Session")
        store.delete_session(record)
    return Ok({"id": session_id})
