"""
Postboard Backend — User Schemas
==================================

What:  Request bodies for /auth/register and /auth/login, and the public
       profile returned everywhere a user appears.

`UserProfile` is the only user projection that leaves the service layer;
it has no password hash field, so the hash can never be serialized.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from postboard.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    login: str = Field(min_length=1, max_length=255, description="Unique login")
    password: str = Field(min_length=1, description="Plain-text password (hashed before storage)")
    full_name: str = Field(min_length=1, max_length=255, description="Display name")
    avatar_url: Optional[str] = Field(default=None, description="Optional avatar image URL")


class LoginRequest(CamelModel):
    login: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class UserProfile(CamelModel):
    """Public profile: a User without its password hash."""
    id: uuid.UUID
    login: str
    full_name: str
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AuthResponse(UserProfile):
    """Returned by register and login: the profile plus a fresh bearer token."""
    token: str
