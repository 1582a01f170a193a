"""Pydantic schemas for authentication and session data."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr

from src.auth.models import Profile


class AuthenticatedUser(BaseModel):
    """Identity extracted from a validated access token."""

    id: UUID
    email: str
    role: str


class GoogleUserInfo(BaseModel):
    """Subset of the OpenID Connect userinfo payload we rely on."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    email: EmailStr
    name: str | None = None
    picture: str | None = None
    email_verified: bool = True


class ProfileResponse(BaseModel):
    """Public profile."""

    id: UUID
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    role: str
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileResponse":
        return cls(**profile.to_dict())


class SessionResponse(BaseModel):
    """Layout data: the signed-in user, their profile and admin flag."""

    user: AuthenticatedUser | None = None
    profile: ProfileResponse | None = None
    is_admin: bool = False

