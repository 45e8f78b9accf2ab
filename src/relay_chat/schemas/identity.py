"""Identity-related Pydantic schemas."""

import re
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from .common import TreeRecord

HANDLE_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,32}$")


class Presence(StrEnum):
    """Presence states shown next to a handle."""

    ONLINE = "online"
    OFFLINE = "offline"
    AWAY = "away"
    BUSY = "busy"


class Identity(TreeRecord):
    """Registered user as stored under ``identities/{handle}``."""

    handle: str
    address: str
    presence: Presence = Presence.ONLINE
    bio: str | None = None
    registered_at: int
    last_login: int | None = None


class RegisterRequest(BaseModel):
    """Schema for account registration."""

    handle: str = Field(..., description="Unique username (1-32 characters)")
    password: str = Field(..., min_length=1, description="Account password")

    @field_validator("handle")
    @classmethod
    def validate_handle(cls, v: str) -> str:
        """Validate the handle can be used as a tree key."""
        if not HANDLE_PATTERN.match(v):
            raise ValueError("Handle must be 1-32 letters, digits, '.', '_' or '-'")
        return v


class LoginRequest(BaseModel):
    """Schema for login submissions."""

    handle: str
    password: str


class LoginResponse(BaseModel):
    """Response returned after successful login or registration."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    identity: Identity


class ProfileUpdateRequest(BaseModel):
    """Schema for updating profile information."""

    bio: str | None = Field(None, max_length=280, description="Optional short bio")
    presence: Presence | None = Field(None, description="Manually chosen presence")


class PresenceUpdate(BaseModel):
    """Schema for presence changes sent when a session opens or closes."""

    presence: Presence
