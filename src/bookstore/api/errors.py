"""HTTP mapping for bookstore error kinds.

Protean's ``register_exception_handlers`` covers its own exception types.
The handlers here take precedence for the bookstore-specific kinds and give
every rejected request the same body: ``{"error": ..., "code": ...}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError

from bookstore.exceptions import InsufficientInventory, InvalidStateTransition, PersistenceFailure

logger = structlog.get_logger(__name__)

_ERROR_MAP = {
    ValidationError: (400, "VALIDATION_ERROR"),
    ObjectNotFoundError: (404, "NOT_FOUND"),
    InvalidStateTransition: (409, "INVALID_STATE_TRANSITION"),
    InsufficientInventory: (409, "INSUFFICIENT_INVENTORY"),
    ExpectedVersionError: (409, "CONCURRENCY_CONFLICT"),
    PersistenceFailure: (503, "PERSISTENCE_FAILURE"),
}


def _error_body(exc: Exception, code: str) -> dict:
    if isinstance(exc, ValidationError):
        return {"error": exc.messages, "code": code}
    return {"error": str(exc), "code": code}


def register_error_handlers(app: FastAPI) -> None:
    """Register a JSON handler for every bookstore error kind on ``app``."""

    def _make_handler(status_code: int, code: str):
        async def _handler(request: Request, exc: Exception) -> JSONResponse:
            log = logger.error if status_code >= 500 else logger.info
            log("Request rejected", path=request.url.path, code=code, error=str(exc))
            return JSONResponse(status_code=status_code, content=_error_body(exc, code))

        return _handler

    for exc_class, (status_code, code) in _ERROR_MAP.items():
        app.add_exception_handler(exc_class, _make_handler(status_code, code))
