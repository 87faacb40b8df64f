"""
Tagged results returned by the core operations.

Core code never raises for expected failures: it returns ``Ok(value)`` or
``Err(kind, detail)`` and the HTTP layer picks the status code.
"""
from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar, Union

from pydantic import ValidationError

T = TypeVar("T")


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    STORAGE = "storage"


class StorageError(Exception):
    """Any failure raised by the backing store."""


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def unauthenticated() -> Err:
    return Err(ErrorKind.UNAUTHENTICATED, "Unauthorized - user id is missing")


def not_found(what: str) -> Err:
    return Err(ErrorKind.NOT_FOUND, f"{what} not found")


def storage_guarded(func: Callable[..., Result]) -> Callable[..., Result]:
    """Surface a StorageError from the store as ``Err(STORAGE)``, no retries."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Result:
        try:
            return func(*args, **kwargs)
        except StorageError as e:
            return Err(ErrorKind.STORAGE, str(e))

    return wrapper


def invalid(detail: str) -> Err:
    return Err(ErrorKind.VALIDATION, detail)


def from_validation_error(error: ValidationError) -> Err:
    """Flatten a pydantic ValidationError into one readable detail line."""
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{loc}: {item['msg']}" if loc else item["msg"])
    return invalid("; ".join(parts))
