# music_combinators/schemas/content.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class CreatorSummary(SQLModel):
    """Owner profile fields embedded in content responses."""

    username: str
    display_name: str | None = None
    artist_name: str | None = None
    avatar_url: str | None = None


class ContentRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    like_count: int
    is_active: bool
    created_at: datetime
    creator: CreatorSummary | None = None
    # Only set when the request carries a viewer
    is_liked: bool | None = None


class TrackRead(ContentRead):
    title: str
    audio_url: str
    cover_url: str | None = None
    duration_seconds: int | None = None
    play_count: int


class ReelRead(ContentRead):
    caption: str | None = None
    video_url: str
    view_count: int


class LikedTrackRead(TrackRead):
    liked_at: datetime


class LikedReelRead(ReelRead):
    liked_at: datetime


class TrackCreate(SQLModel):
    """Metadata part of the multipart track upload."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(max_length=200)
    duration_seconds: int | None = Field(default=None, ge=0)

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Track title is required")
        return v


class ReelCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    caption: str | None = Field(default=None, max_length=2200)

    @field_validator("caption")
    @classmethod
    def normalize_caption(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None


def _require_visibility(v: bool | None) -> bool:
    if v is None:
        raise ValueError("is_active must be true or false")
    return v


class TrackUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=200)
    is_active: bool | None = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str:
        # Omitted fields skip validation; an explicit null lands here
        if v is None or not v.strip():
            raise ValueError("Track title cannot be empty")
        return v.strip()

    @field_validator("is_active")
    @classmethod
    def check_is_active(cls, v: bool | None) -> bool:
        return _require_visibility(v)


class ReelUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    caption: str | None = Field(default=None, max_length=2200)
    is_active: bool | None = None

    @field_validator("is_active")
    @classmethod
    def check_is_active(cls, v: bool | None) -> bool:
        return _require_visibility(v)


class VisibilityUpdate(SQLModel):
    """Admin takedown / restore payload."""

    model_config = ConfigDict(extra="forbid")

    is_active: bool


class LikeToggleResult(SQLModel):
    liked: bool
    like_count: int
