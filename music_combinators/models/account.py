# music_combinators/models/account.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field

ROLE_LISTENER = "listener"
ROLE_CREATOR = "creator"
ROLE_ADMIN = "admin"

STATUS_WAITLISTED = "waitlisted"
STATUS_ACTIVE = "active"
STATUS_BANNED = "banned"


class Account(SQLModel, table=True):
    """
    Identity-linked account record.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    State:
      - role:   listener | creator | admin
      - status: waitlisted | active | banned

    Status transitions (admin only, always conditional writes):
      waitlisted -> active -> banned -> active

    Role only moves listener -> creator, via an approved creator application.
    Rows are never hard-deleted.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        index=True,
        description="Email from Supabase auth.users, used for notifications",
    )

    role: str = Field(
        default=ROLE_LISTENER,
        index=True,
        description="Application role: listener | creator | admin",
    )

    status: str = Field(
        default=STATUS_WAITLISTED,
        index=True,
        description="Account status: waitlisted | active | banned",
    )

    approved_at: datetime | None = Field(
        default=None,
        description="When the account left the waitlist",
    )

    ban_reason: str | None = Field(
        default=None,
        description="Admin-provided reason for banning the user",
    )

    banned_at: datetime | None = Field(
        default=None,
        description="When the user was banned",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Signup timestamp (UTC); waitlist order key",
    )


class Profile(SQLModel, table=True):
    """
    Public display data, 1:1 with Account (same primary key).

    `username` is globally unique and is the public lookup handle.
    `artist_name` is only meaningful for creators.
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        primary_key=True,
        foreign_key="users.id",
        description="FK to users.id",
    )

    username: str = Field(
        max_length=50,
        unique=True,
        index=True,
    )

    display_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None)
    avatar_url: str | None = Field(default=None)
    artist_name: str | None = Field(default=None, max_length=100)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
