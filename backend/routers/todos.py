"""
Todo list: bulk save, per-item edits and deletes. Order is kept by position.
"""
from typing import Any

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel

import todo_list
from api_errors import unwrap
from store import RecordStore, get_store

router = APIRouter(prefix="/api", tags=["todos"])


class SaveTodosRequest(BaseModel):
    todos: list[Any]


@router.get("/todos")
def list_todos(
    store: RecordStore = Depends(get_store),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    return unwrap(todo_list.list_todos(store, user_id))


@router.post("/todos", status_code=201)
def save_todos(
    req: SaveTodosRequest,
    store: RecordStore = Depends(get_store),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    """Replace the whole list; array order becomes the stored order."""
    return unwrap(todo_list.replace_todos(store, user_id, req.todos))


@router.api_route("/todos/{todo_id}", methods=["PUT", "PATCH"])
def update_todo(
    todo_id: str,
    fields: dict[str, Any],
    store: RecordStore = Depends(get_store),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    return unwrap(todo_list.patch_todo(store, user_id, todo_id, fields))


@router.delete("/todos/{todo_id}")
def delete_todo(
    todo_id: str,
    store: RecordStore = Depends(get_store),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    """Delete one todo; the rest are renumbered 0..N-1 in their current order."""
    unwrap(todo_list.remove_todo(store, user_id, todo_id))
    return {"message": "Todo deleted"}
