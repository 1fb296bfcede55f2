"""Global exception handlers — translate domain errors to HTTP responses.

Every :class:`ContextWeaverError` is answered with the standard
``{"status": "error", "message": "..."}`` envelope and the status of the
closest class in :data:`STATUS_BY_ERROR`.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from context_weaver.domain.exceptions import (
    ContextWeaverError,
    InvalidBudgetError,
    NodeNotFoundError,
    OutputPathError,
    ScanError,
    UnknownActionError,
    UnknownFormatError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[ContextWeaverError], int] = {
    InvalidBudgetError: 422,
    UnknownFormatError: 422,
    UnknownActionError: 422,
    NodeNotFoundError: 404,
    ScanError: 400,
    OutputPathError: 400,
}


def status_for(exc: ContextWeaverError) -> int:
    """HTTP status for *exc*, resolved along its MRO; unmapped errors are 500."""
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


def _error_json(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application."""

    @app.exception_handler(ContextWeaverError)
    async def domain_handler(request: Request, exc: ContextWeaverError) -> JSONResponse:
        status_code = status_for(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return _error_json(status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = [
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid value')}"
            for err in exc.errors()
        ]
        return _error_json(422, "; ".join(messages))

    # Anything else is a bug; keep details in the log only
    @app.exception_handler(Exception)
    async def generic_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s", request.url.path)
        return _error_json(500, "Internal error while assembling context.")
