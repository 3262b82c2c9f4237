"""Custom exceptions and the ``{success, message}`` error envelope handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → ``{"success": false, ...}`` JSON."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class UnauthorizedException(AppException):
    """401 — missing, invalid or role-mismatched credentials."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(status_code=401, message=message)


class NotFoundException(AppException):
    """404 — entity absent, or outside the caller's scope."""

    def __init__(self, entity_type: str, entity_id: Any = None) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(status_code=404, message=f"{entity_type} not found")


class ValidationException(AppException):
    """400 — missing/empty fields, duplicates, illegal state transitions."""

    def __init__(self, message: str) -> None:
        super().__init__(status_code=400, message=message)


# ── Envelope builder ────────────────────────────────────────────────

def error_body(message: str) -> dict[str, Any]:
    return {"success": False, "message": message}


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def _handle_http_exception(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    fields: list[str] = []
    for err in exc.errors():
        loc = err.get("loc", ())
        name = ".".join(str(p) for p in loc[1:]) if len(loc) > 1 else "body"
        if name not in fields:
            fields.append(name)
    message = "Missing or invalid fields: " + ", ".join(fields)
    return JSONResponse(status_code=400, content=error_body(message))


async def _handle_rate_limit(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=error_body("Too many requests. Please try again later."),
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body(INTERNAL_ERROR_MESSAGE))


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _handle_rate_limit)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)
