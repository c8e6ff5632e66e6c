"""
Blue Whale Backend: Password Hashing & Access Tokens
======================================================

What:  bcrypt password hashing (passlib) and HS256 bearer tokens (PyJWT).
Who:   Used by AuthService (register/login) and the get_current_user dependency.

Token payload:
    {"sub": "<user uuid>", "type": "access", "iat": <issued>, "exp": <expiry>}

Passwords are only ever stored as bcrypt hashes; the plain text never
leaves hash_password()/verify_password().
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt
from passlib.context import CryptContext

from bluewhale.config import settings
from bluewhale.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

TOKEN_TYPE = "access"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: Optional[str], hashed_password: Optional[str]) -> bool:
    """Constant-time bcrypt comparison; False for missing inputs or a malformed hash."""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a bearer token for `user_id` (default lifetime: settings.jwt_expire_days)."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.jwt_expire_days))
    payload = {
        "sub": str(user_id),
        "type": TOKEN_TYPE,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    """
    Verify a bearer token and return the user id it was issued for.

    Raises:
        AuthenticationError: expired token (distinct message), bad signature,
            malformed payload, or a token of another type.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Authentication token has expired")
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected token: %s", e)
        raise AuthenticationError(message="Invalid authentication token")

    if payload.get("type") != TOKEN_TYPE:
        raise AuthenticationError(message="Invalid authentication token")

    try:
        return UUID(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError(message="Invalid authentication token")
