"""Exception handlers that turn failures into the error envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sqlchat.api.schemas import format_error
from sqlchat.exceptions import SQLChatError

logger = logging.getLogger(__name__)


async def sqlchat_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map SQLChatError subclasses to their status code."""
    if not isinstance(exc, SQLChatError):
        return await global_exception_handler(request, exc)
    logger.info("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code, content=format_error(exc.message, exc.status_code)
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        return await global_exception_handler(request, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=format_error(str(exc.detail), exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Malformed request bodies are client errors (400)."""
    if isinstance(exc, RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
    else:
        details = str(exc)
    logger.warning("Invalid request on %s: %s", request.url.path, details)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=format_error(f"Invalid request: {details}", status.HTTP_400_BAD_REQUEST),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures with traceback and return a generic 500."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=format_error(f"Internal server error: {exc}", 500),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the application."""
    app.add_exception_handler(SQLChatError, sqlchat_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
