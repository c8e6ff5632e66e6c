"""
Blue Whale Backend: User & Auth Schemas
=========================================

What:  API contracts for /auth and /users.

UserResponse is the only public projection of a User row; it never declares
the password hash, so the hash can't leak through any response.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from bluewhale.schemas.common import GeoPoint, Pagination


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    location: GeoPoint = Field(default_factory=GeoPoint)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserStats(BaseModel):
    followers_count: int
    following_count: int
    content_count: int


class UserProfileResponse(BaseModel):
    """GET /users/{id}: the user plus follower/following/content counts."""
    user: UserResponse
    stats: UserStats


class UserMutationResponse(BaseModel):
    message: str
    user: UserResponse


class UserSearchResponse(BaseModel):
    users: List[UserResponse]
    pagination: Pagination


class FollowersResponse(BaseModel):
    followers: List[UserResponse]
    pagination: Pagination


class FollowingResponse(BaseModel):
    following: List[UserResponse]
    pagination: Pagination


class AuthResponse(BaseModel):
    """Returned by register (201) and login (200)."""
    message: str
    user: UserResponse
    token: str = Field(description="Bearer token for the Authorization header")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(description="Plain-text password (min 6 characters)")


class LoginRequest(BaseModel):
    email: str
    password: str


class UserUpdateRequest(BaseModel):
    """
    PUT /users/{id}. Every field is optional; empty values are ignored so a
    client can send the whole form back without clearing unchanged fields.
    """
    name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)
    location: Optional[GeoPoint] = None
