"""
Error Handling for Librarian

Centralized error handling:
- Structured error responses
- Logging of errors
- Exception translation
"""

import traceback

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from librarian.clock import utcnow
from librarian.exceptions import LibrarianError
from .logging import get_request_id


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: str = None,
    headers: dict = None,
) -> JSONResponse:
    """Create standardized error response."""
    content = {
        "error": error,
        "code": code,
        "detail": detail,
        "timestamp": utcnow().isoformat(),
    }
    request_id = get_request_id()
    if request_id:
        content["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts)


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(LibrarianError)
    async def librarian_exception_handler(request: Request, exc: LibrarianError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message} ({exc.detail})")
        else:
            logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")

        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return create_error_response(
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        detail = _format_validation_errors(exc)
        logger.warning(f"Validation error on {request.url.path}: {detail}")
        return create_error_response(
            error="Validation Error",
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return create_error_response(
            error=str(exc.detail),
            code="HTTP_ERROR",
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}\n{traceback.format_exc()}"
        )

        # Don't expose internal error details
        return create_error_response(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )
