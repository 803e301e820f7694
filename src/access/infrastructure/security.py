"""
Bearer Token Security
======================

Signed JWT access tokens identifying an account.

Tokens carry the account id only; role and permissions are re-read from
the database on every request so revocations apply immediately.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from src.config import settings
from src.core import AuthenticationException


def create_access_token(
    account_id: str,
    expires_in: Optional[timedelta] = None,
    secret: Optional[str] = None
) -> str:
    """
    Create signed access JWT.

    Args:
        account_id: Account the token identifies
        expires_in: Token lifetime (defaults to ``jwt_expires_hours``)
        secret: Signing secret (defaults to ``jwt_secret``)
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": account_id,
        "iat": now,
        "exp": now + (expires_in or timedelta(hours=settings.jwt_expires_hours)),
    }
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, secret: Optional[str] = None) -> str:
    """
    Decode and verify an access JWT.

    Returns:
        The account id carried in ``sub``

    Raises:
        AuthenticationException: If the token is expired, malformed or
            signed with another secret
    """
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationException("Token expired", {"error": "expired"}) from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationException("Not authorized to access this route") from e

    return str(payload["sub"])
