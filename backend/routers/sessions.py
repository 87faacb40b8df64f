"""
Focus sessions: record, list, edit and delete sessions, plus the stats
endpoint built from them. The user comes from the X-User-Id header.
"""
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel

import analytics
import sessions_core
from api_errors import unwrap
from config import settings
from store import RecordStore, get_store

router = APIRouter(prefix="/api", tags=["sessions"])


class SessionRequest(BaseModel):
    label: Any = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    completed: Optional[bool] = None


@router.post("/sessions", status_code=201)
def create_session(
    req: SessionRequest,
    store: RecordStore = Depends(get_store),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    """Record a focus session. Missing times default to now and now + 25 minutes."""
    return unwrap(
        sessions_core.create_session(
            store,
            user_id,
            label=req.label,
            started_at=req.started_at,
            ended_at=req.ended_at,
            completed=req.completed,
        )
    )


@router.get("/sessions")
def list_sessions(
    limit: int = Query(20, ge=0),
    store: RecordStore = Depends(get_store),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    """List sessions (newest first) for this user. limit=0 returns all of them."""
    return unwrap(sessions_core.list_sessions(store, user_id, limit=limit or None))


@router.api_route("/sessions/{session_id}", methods=["PUT", "PATCH"])
def update_session(
    session_id: str,
    patch: dict[str, Any],
    store: RecordStore = Depends(get_store),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    """Change label, times or completed flag; omitted fields keep their values."""
    return unwrap(sessions_core.update_session(store, user_id, session_id, patch))


@router.delete("/sessions/{session_id}")
def delete_session(
    session_id: str,
    store: RecordStore = Depends(get_store),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    unwrap(sessions_core.delete_session(store, user_id, session_id))
    return {"message": "Session deleted"}


# --- Stats ---


@router.get("/stats")
def get_stats(
    store: RecordStore = Depends(get_store),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    """Totals, weekday activity, streak, weekly trend and heatmap for this user."""
    return unwrap(analytics.compute_stats(store, user_id, tz=settings.tz))
