"""
Error Handling for the profile service

Centralized error handling:
- Uniform `{success: false, message, errors?}` envelope
- Domain error to status code translation
- Logging of unexpected errors without leaking details
"""

import traceback
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from profile_service.profiles.errors import (
    ConflictError,
    InvalidOperationError,
    InvalidReferenceError,
    NotFoundError,
    ProfileError,
)


STATUS_BY_ERROR = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_400_BAD_REQUEST,
    InvalidReferenceError: status.HTTP_400_BAD_REQUEST,
    InvalidOperationError: status.HTTP_400_BAD_REQUEST,
}


def status_for(exc: ProfileError) -> int:
    """Map a domain error to its HTTP status."""
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def create_error_response(
    message: str,
    status_code: int,
    errors: Optional[List[Dict[str, Any]]] = None,
    error: Optional[str] = None,
) -> JSONResponse:
    """Create standardized error response."""
    content: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    if error:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


def format_validation_errors(raw_errors: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Flatten pydantic errors into `{field, rule, message}` entries.

    The location prefix ("body", "path") is dropped so `field` reads as a
    path inside the request, e.g. "favoriteGenres.1".
    """
    formatted = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ())]
        field_path = ".".join(loc[1:]) if len(loc) > 1 else ".".join(loc)
        formatted.append({
            "field": field_path,
            "rule": err.get("type", "invalid"),
            "message": err.get("msg", "Invalid value"),
        })
    return formatted


def setup_exception_handlers(app, expose_errors: bool = False):
    """
    Register exception handlers with FastAPI app.

    Args:
        app: FastAPI application.
        expose_errors: Include the exception text in 500 responses.
            Only meant for development.
    """

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        raw_errors = exc.errors()
        path_failed = any(err.get("loc", ("",))[0] == "path" for err in raw_errors)
        message = "Invalid user ID" if path_failed else "Invalid data"

        logger.warning(f"Validation error on {request.method} {request.url.path}: {message}")
        return create_error_response(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            errors=format_validation_errors(raw_errors),
        )

    @app.exception_handler(ProfileError)
    async def profile_exception_handler(request: Request, exc: ProfileError):
        status_code = status_for(exc)
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return create_error_response(message=exc.message, status_code=status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = "Route not found"
        else:
            message = str(exc.detail)
        return create_error_response(message=message, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: "
            f"{type(exc).__name__}: {exc}\n{traceback.format_exc()}"
        )
        return create_error_response(
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error=str(exc) if expose_errors else None,
        )
