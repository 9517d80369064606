"""
Errors raised by the review engine.

The engine knows nothing about HTTP; the API layer maps these onto status
codes (see partsmarket.api.middleware.error_handler).
"""
from typing import Any, Dict, Optional


class ReviewEngineError(Exception):
    """Base class for review engine failures."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(ReviewEngineError):
    """Input has the wrong shape or is out of range."""


class NotFoundError(ReviewEngineError):
    """A referenced seller, user or review does not exist."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            message,
            details={"resource": resource, "resource_id": resource_id},
        )
        self.resource = resource
        self.resource_id = resource_id


class AuthorizationError(ReviewEngineError):
    """Caller is not allowed to perform the operation on this review."""


class ConflictError(ReviewEngineError):
    """Operation conflicts with the review's current state."""
