"""JWT token helpers for the access boundary.

Tokens are signed with the shared secret from settings. The `sub` claim
carries the marketplace user id; routes trust it once the signature checks out.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError

from partsmarket.lib.settings import settings


# Token expiration time (24 hours by default)
TOKEN_EXPIRY_HOURS = 24


def create_access_token(
    user_id: int,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token for a user.

    Issuing tokens belongs to the auth service; this exists so local tooling
    and tests can mint tokens the API accepts.

    Args:
        user_id: Marketplace user id (stored in 'sub' claim)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(hours=TOKEN_EXPIRY_HOURS)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),  # JWT requires 'sub' to be a string
        "iat": now,
        "exp": now + expires_delta,
    }

    return jwt.encode(
        payload,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Raises:
        InvalidTokenError: If token is invalid, expired, or signature doesn't match
    """
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
    )


def get_user_id_from_token(token: str) -> int:
    """Extract the caller's user id from a token.

    Raises:
        InvalidTokenError: If token is invalid or 'sub' is missing or not numeric
    """
    payload = verify_token(token)
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise InvalidTokenError("Token subject is not a user id")
    return int(subject)
