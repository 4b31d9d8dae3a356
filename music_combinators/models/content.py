# music_combinators/models/content.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field

CONTENT_TRACK = "track"
CONTENT_REEL = "reel"


class ContentBase(SQLModel):
    """
    Shape shared by tracks and reels.

    - owned by exactly one creator (user_id)
    - publicly visible iff is_active
    - like_count is a cache of count(likes) kept in the same transaction
      as every like insert/delete
    """

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
        description="Owner (creator) of this item",
    )

    like_count: int = Field(default=0, ge=0)

    is_active: bool = Field(
        default=True,
        index=True,
        description="Soft-delete flag; inactive items are hidden from listings",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )


class Track(ContentBase, table=True):
    """Short audio upload with optional cover art."""

    __tablename__ = "tracks"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    title: str = Field(max_length=200, index=True)
    audio_url: str = Field(description="Public URL in Supabase Storage")
    cover_url: str | None = None
    duration_seconds: int | None = Field(default=None, ge=0)
    play_count: int = Field(default=0, ge=0)


class Reel(ContentBase, table=True):
    """Short video upload."""

    __tablename__ = "reels"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    caption: str | None = None
    video_url: str = Field(description="Public URL in Supabase Storage")
    view_count: int = Field(default=0, ge=0)
