# music_combinators/schemas/application.py
import uuid
from datetime import datetime
from typing import Literal
from urllib.parse import urlparse

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

ApplicationStatus = Literal["pending", "approved", "rejected"]
ReviewDecision = Literal["approved", "rejected"]

MAX_SAMPLE_TRACKS = 5


def _is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class ApplicationCreate(SQLModel):
    """
    Payload for submitting a creator application.

    Rules:
      - artist_name: 2-100 characters
      - application_reason: 50-2000 characters
      - portfolio_url / sample_tracks: well-formed http(s) URLs, max 5 samples
    """

    model_config = ConfigDict(extra="forbid")

    artist_name: str
    application_reason: str
    portfolio_url: str | None = None
    sample_tracks: list[str] = Field(default_factory=list)

    @field_validator("artist_name")
    @classmethod
    def check_artist_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2 or len(v) > 100:
            raise ValueError("Artist name must be between 2 and 100 characters")
        return v

    @field_validator("application_reason")
    @classmethod
    def check_reason(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 50 or len(v) > 2000:
            raise ValueError(
                "Application reason must be between 50 and 2000 characters"
            )
        return v

    @field_validator("portfolio_url")
    @classmethod
    def check_portfolio_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if not _is_valid_url(v):
            raise ValueError("Invalid portfolio URL format")
        return v

    @field_validator("sample_tracks")
    @classmethod
    def check_sample_tracks(cls, v: list[str]) -> list[str]:
        if len(v) > MAX_SAMPLE_TRACKS:
            raise ValueError(f"Maximum {MAX_SAMPLE_TRACKS} sample tracks allowed")
        cleaned = [url.strip() for url in v]
        for url in cleaned:
            if not _is_valid_url(url):
                raise ValueError("Invalid sample track URL format")
        return cleaned


class ApplicationRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    artist_name: str
    application_reason: str
    portfolio_url: str | None = None
    sample_tracks: list[str] = []
    status: ApplicationStatus
    submitted_at: datetime
    reviewed_at: datetime | None = None
    reviewed_by: uuid.UUID | None = None
    admin_notes: str | None = None
    rejection_reason: str | None = None


class ApplicationReview(SQLModel):
    """Admin decision on a pending application."""

    model_config = ConfigDict(extra="forbid")

    decision: ReviewDecision
    notes: str | None = Field(default=None, max_length=2000)


class ApplicationReviewResult(SQLModel):
    application: ApplicationRead
    applicant_role: str
