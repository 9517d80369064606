"""
Error handler middleware and custom exceptions.

Provides consistent error responses, the HTTP-layer exception classes, and
the mapping from review engine errors to status codes.
"""
import logging
from typing import Optional, Dict, Any
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from partsmarket.lib.logging import get_logger
from partsmarket.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ReviewEngineError,
    ValidationError,
)

logger = get_logger(__name__)


# Status codes for engine errors; anything unlisted is a server error
ENGINE_ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
}


# Custom exception classes
class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    content = {
        "error": message,
        "correlation_id": correlation_id,
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# Exception handlers
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handler for custom application exceptions.

    Returns consistent error response with correlation ID.
    """
    log_level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        log_level,
        f"Application error: {exc.message}",
        extra={
            "extra_fields": {
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method,
                "details": exc.details,
            }
        },
    )
    return _error_response(request, exc.status_code, exc.message, exc.details)


async def review_engine_exception_handler(request: Request, exc: ReviewEngineError) -> JSONResponse:
    """
    Handler for review engine errors.

    The engine already logged the rejection; this only picks the status code.
    """
    status_code = ENGINE_ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return _error_response(request, status_code, exc.message, exc.details)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handler for Pydantic validation errors.

    Formats validation errors in a consistent way.
    """
    errors = [
        {
            "loc": list(error["loc"]),
            "msg": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error",
        extra={
            "extra_fields": {
                "path": request.url.path,
                "method": request.method,
                "errors": errors,
            }
        },
    )

    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        {"errors": errors},
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """
    Handler for Starlette HTTP exceptions.

    Provides consistent format for HTTP errors.
    """
    logger.warning(
        f"HTTP exception: {exc.detail}",
        extra={
            "extra_fields": {
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method,
            }
        },
    )
    return _error_response(request, exc.status_code, exc.detail)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler for unhandled exceptions.

    Logs full stack trace and returns generic error message.
    """
    logger.error(
        f"Unhandled exception: {exc}",
        extra={
            "extra_fields": {
                "path": request.url.path,
                "method": request.method,
            }
        },
        exc_info=True,
    )
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
