"""
Ordered todo list per user.

Positions for one user are always exactly 0..N-1: bulk saves rewrite the
whole list in one transaction and deletes re-index the survivors in the same
transaction as the delete.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError

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

# clients send either spelling
_RECORDED_ALIASES = AliasChoices("recorded_in_stats", "recordedInStats")


class TodoIn(BaseModel):
    id: Union[str, int]
    text: str
    completed: bool = False
    recorded_in_stats: bool = Field(default=False, validation_alias=_RECORDED_ALIASES)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "text": self.text,
            "completed": self.completed,
            "recorded_in_stats": self.recorded_in_stats,
        }


class TodoPatch(BaseModel):
    text: Optional[str] = None
    completed: Optional[bool] = None
    recorded_in_stats: Optional[bool] = Field(default=None, validation_alias=_RECORDED_ALIASES)


@storage_guarded
def list_todos(store: RecordStore, owner: Optional[str]) -> Result[list]:
    if not owner:
        return unauthenticated()
    return Ok([todo.to_dict() for todo in store.list_todos(owner)])


@storage_guarded
def replace_todos(store: RecordStore, owner: Optional[str], items: Iterable[Any]) -> Result[list]:
    """
    Replace the user's whole list with ``items``; position is the array index.
    Either every item is saved or the previous list is left untouched. The
    payload is echoed back as sent.
    """
    if not owner:
        return unauthenticated()
    try:
        items = list(items)
        todos = [TodoIn.model_validate(item).to_dict() for item in items]
    except ValidationError as e:
        return from_validation_error(e)
    except TypeError:
        return invalid("todos must be a list")

    ids = [todo["id"] for todo in todos]
    if len(set(ids)) != len(ids):
        return invalid("todo ids must be unique")

    with store.transaction():
        store.lock_todos(owner)
        store.delete_all_todos(owner)
        for position, todo in enumerate(todos):
            store.insert_todo(owner, todo, position)
    return Ok(items)


@storage_guarded
def patch_todo(
    store: RecordStore, owner: Optional[str], todo_id: str, fields: Mapping[str, Any]
) -> Result[dict]:
    """Update text/completed/recorded_in_stats; position is never changed here."""
    if not owner:
        return unauthenticated()
    try:
        patch = TodoPatch.model_validate(dict(fields))
    except ValidationError as e:
        return from_validation_error(e)
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)

    with store.transaction():
        store.lock_todos(owner)
        todo = store.get_todo(owner, todo_id)
        if todo is None:
            return not_found("Todo")
        if changes:
            store.update_todo_fields(todo, changes)
        return Ok(todo.to_dict())


@storage_guarded
def remove_todo(store: RecordStore, owner: Optional[str], todo_id: str) -> Result[dict]:
    if not owner:
        return unauthenticated()
    with store.transaction():
        store.lock_todos(owner)
        todo = store.get_todo(owner, todo_id)
        if todo is None:
            return not_found("Todo")
        store.delete_todo(todo)
        store.reindex_todos(owner)
    return Ok({"id": todo_id})
