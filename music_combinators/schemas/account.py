# music_combinators/schemas/account.py
import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

Role = Literal["listener", "creator", "admin"]
AccountStatus = Literal["waitlisted", "active", "banned"]

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def validate_username(v: str) -> str:
    """
    Shared username rule: 3-50 chars, letters/digits/underscore only.
    """
    v = v.strip()
    if len(v) < 3 or len(v) > 50:
        raise ValueError("Username must be between 3 and 50 characters")
    if not USERNAME_PATTERN.match(v):
        raise ValueError("Username can only contain letters, numbers, and underscores")
    return v


class ProfileRead(SQLModel):
    username: str
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    artist_name: str | None = None
    created_at: datetime


class AccountRead(SQLModel):
    """Full account view, returned to the owner and to admins."""

    id: uuid.UUID
    email: str
    role: Role
    status: AccountStatus
    approved_at: datetime | None = None
    ban_reason: str | None = None
    banned_at: datetime | None = None
    created_at: datetime
    profile: ProfileRead


class PublicAccountRead(SQLModel):
    """What other users may see about an account."""

    id: uuid.UUID
    role: Role
    profile: ProfileRead


class PublicProfileRead(PublicAccountRead):
    follower_count: int = 0
    following_count: int = 0
    is_following: bool = False


class FollowEntry(SQLModel):
    """One row of a followers/following listing."""

    id: uuid.UUID
    username: str
    display_name: str | None = None
    artist_name: str | None = None
    avatar_url: str | None = None
    followed_at: datetime


class ProfileUpdate(SQLModel):
    """
    Self-service profile patch. Only provided fields are changed.

    `artist_name` is accepted by the schema but rejected by the service
    unless the caller is a creator.
    """

    model_config = ConfigDict(extra="forbid")

    username: str | None = None
    display_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=1000)
    avatar_url: str | None = None
    artist_name: str | None = Field(default=None, max_length=100)

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_username(v)

    @field_validator("display_name", "artist_name")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip()
