"""
Error taxonomy for the Diary API.

Services raise these; ``register_exception_handlers`` turns them into JSON
responses of the form ``{"error": message}``.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from diary.logging import get_logger

logger = get_logger('errors')


class DiaryError(Exception):
    """Base class for errors that map onto an HTTP status."""
    status_code: int = 400
    default_message: str = "Request failed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DiaryError):
    """Malformed or missing input."""
    status_code = 400
    default_message = "Invalid request."


class ConflictError(DiaryError):
    """Duplicate unique key."""
    status_code = 409
    default_message = "Resource already exists."


class AuthError(DiaryError):
    """Bad credentials. Never says which half of the pair was wrong."""
    status_code = 401
    default_message = "Invalid email or password."


class Unauthorized(DiaryError):
    """Missing or expired session."""
    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(DiaryError):
    """Missing resource, or one owned by somebody else."""
    status_code = 404
    default_message = "Not found"


class StorageError(DiaryError):
    """Backing store failure. Detail stays in the server log."""
    status_code = 500
    default_message = "Storage error. Please try again."


class EmptyResultError(DiaryError):
    """Export requested over an empty selection."""
    status_code = 404
    default_message = "No notes to export."


def _error_body(message: str, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"error": message}
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DiaryError)
    async def _diary_error_handler(request: Request, exc: DiaryError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.warning(
                f"{request.method} {request.url.path} rejected "
                f"({exc.status_code} {type(exc).__name__}): {exc.message}"
            )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail or "HTTP error")),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=_error_body("Validation error", details=errors),
        )

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))
