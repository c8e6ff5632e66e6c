"""
Blue Whale Backend: Request Dependencies
==========================================

What:  FastAPI dependencies that resolve the caller from the bearer token.
How:   HTTPBearer(auto_error=False) extracts the token so that a missing or
       malformed header becomes our own AuthenticationError (401 with the
       standard error body) instead of FastAPI's default 403.

Failure modes of get_current_user:
    no / non-Bearer Authorization header  → 401 "Authentication token is required"
    expired token                         → 401 "Authentication token has expired"
    bad signature, wrong type, bad sub    → 401 "Invalid authentication token"
    valid token, user since deleted       → 404 "user ... was not found"
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from bluewhale.database import get_db_session
from bluewhale.exceptions import AuthenticationError, NotFoundError
from bluewhale.models import User
from bluewhale.security import decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="JWT from /auth/login or /auth/register")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    user_id = decode_access_token(credentials.credentials)

    user = await db.get(User, user_id)
    if user is None:
        logger.info("Token presented for missing user %s", user_id)
        raise NotFoundError(resource="user", resource_id=str(user_id))
    return user
