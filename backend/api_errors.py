"""
Translate core results into HTTP responses.
"""
import logging

from fastapi import HTTPException

from results import Err, ErrorKind, Result

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 422,
    ErrorKind.STORAGE: 500,
}


def unwrap(result: Result):
    """Return the Ok value or raise the matching HTTPException."""
    if not isinstance(result, Err):
        return result.value
    if result.kind is ErrorKind.STORAGE:
        logger.error("Storage failure: %s", result.detail)
        raise HTTPException(status_code=500, detail="Server error")
    raise HTTPException(status_code=STATUS_BY_KIND[result.kind], detail=result.detail)
