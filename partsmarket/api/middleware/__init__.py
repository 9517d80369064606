"""
API middleware module.
"""
from partsmarket.api.middleware.error_handler import (
    AppException,
    UnauthorizedException,
    app_exception_handler,
    review_engine_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
)

__all__ = [
    "AppException",
    "UnauthorizedException",
    "app_exception_handler",
    "review_engine_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
    "unhandled_exception_handler",
]
