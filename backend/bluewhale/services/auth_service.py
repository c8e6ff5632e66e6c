"""
Blue Whale Backend: Auth Service
==================================

What:  Account registration and password login.
How:   Emails are normalized (trimmed, lower-cased) before every lookup, so
       the unique index on users.email is effectively case-insensitive.
       Passwords are bcrypt-hashed (passlib) and never leave this module.
Who:   Called by POST /auth/register and POST /auth/login.

Both operations return a fresh access token; logout is client-side only
because tokens are stateless and not revocable.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bluewhale.config import settings
from bluewhale.exceptions import AuthenticationError, ValidationError
from bluewhale.models import User
from bluewhale.models.user import utcnow
from bluewhale.schemas.user import AuthResponse, UserResponse
from bluewhale.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService:

    async def register(self, db: AsyncSession, email: str, password: str) -> AuthResponse:
        """
        Create an account and log it in.

        The display name starts as the email's local part; users change it
        later through PUT /users/{id}.

        Raises:
            ValidationError: password too short, or email already registered
        """
        email = normalize_email(email)

        if len(password or "") < settings.password_min_length:
            raise ValidationError(
                message=f"Password must be at least {settings.password_min_length} characters long",
                field="password",
            )

        existing = await db.scalar(select(User).where(User.email == email))
        if existing is not None:
            raise ValidationError(message="Email is already registered", field="email")

        now = utcnow()
        user = User(
            id=uuid.uuid4(),
            email=email,
            password_hash=hash_password(password),
            name=email.split("@")[0],
            longitude=0.0,
            latitude=0.0,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            raise ValidationError(message="Email is already registered", field="email")

        logger.info("Registered user %s", user.id)
        return AuthResponse(
            message="User registered successfully",
            user=UserResponse.model_validate(user),
            token=create_access_token(user.id),
        )

    async def login(self, db: AsyncSession, email: str, password: str) -> AuthResponse:
        """
        Raises:
            AuthenticationError: unknown email or wrong password (same message for both)
        """
        user = await db.scalar(select(User).where(User.email == normalize_email(email)))

        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt for %s", normalize_email(email))
            raise AuthenticationError(message=INVALID_CREDENTIALS)

        logger.info("User %s logged in", user.id)
        return AuthResponse(
            message="Login successful",
            user=UserResponse.model_validate(user),
            token=create_access_token(user.id),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
