"""
API dependencies for FastAPI dependency injection.

Provides database sessions, the authenticated caller, and the per-request
review service.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jwt.exceptions import InvalidTokenError
from sqlalchemy.orm import Session

from partsmarket.api.middleware.error_handler import UnauthorizedException
from partsmarket.lib.db import get_db
from partsmarket.lib.jwt import get_user_id_from_token
from partsmarket.models.users import User
from partsmarket.services.review_service import ReviewService


# HTTP Bearer token security scheme; missing tokens are reported by us as 401
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to get current authenticated user from JWT token.

    Raises:
        UnauthorizedException: 401 if token missing, invalid or user not found
    """
    if credentials is None:
        raise UnauthorizedException("Missing bearer token")

    try:
        user_id = get_user_id_from_token(credentials.credentials)
    except InvalidTokenError as e:
        raise UnauthorizedException(f"Could not validate credentials: {e}")

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedException("User not found")
    return user


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Fresh review service bound to this request's session."""
    return ReviewService(db)
