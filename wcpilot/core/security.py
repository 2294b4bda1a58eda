"""
wcpilot/core/security.py

Purpose: Credentials and access tokens

- bcrypt password hashing
- HS256 access tokens carrying user id, email and role
- Token verification into an Identity
"""

from datetime import timedelta
from typing import Optional

import bcrypt
import jwt
from pydantic import BaseModel

from wcpilot.core.config import settings
from wcpilot.core.exceptions import AuthenticationError
from wcpilot.core.logging import get_logger
from wcpilot.utils.time_utils import utc_now

logger = get_logger(__name__)


class Identity(BaseModel):
    """The caller behind an access token."""
    user_id: str
    email: str
    role: str = "user"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # malformed hash
        return False


def issue_token(identity: Identity, expires_in: Optional[timedelta] = None) -> str:
    now = utc_now()
    payload = {
        "sub": identity.user_id,
        "email": identity.email,
        "role": identity.role,
        "iat": now,
        "exp": now + (expires_in or timedelta(days=settings.JWT_EXPIRE_DAYS)),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: Optional[str]) -> Identity:
    """
    Decodes and checks an access token.

    Raises:
        AuthenticationError: Missing, expired or invalid token
    """
    if not token:
        raise AuthenticationError("Access token required")

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise AuthenticationError("Invalid token")

    return Identity(
        user_id=payload["sub"],
        email=payload.get("email", ""),
        role=payload.get("role", "user"),
    )
