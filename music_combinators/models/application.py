# music_combinators/models/application.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Index, text
from sqlmodel import SQLModel, Field

APPLICATION_PENDING = "pending"
APPLICATION_APPROVED = "approved"
APPLICATION_REJECTED = "rejected"

# Statuses that block a new submission for the same user
OPEN_APPLICATION_STATUSES = (APPLICATION_PENDING, APPLICATION_APPROVED)


class CreatorApplication(SQLModel, table=True):
    """
    Request from a listener to become a creator.

    Lifecycle:
      pending -> approved | rejected   (exactly once, by an admin)

    At most one row per user may be pending or approved. The partial
    unique index below backs the service-level check so that two racing
    submissions cannot both land.
    """

    __tablename__ = "creator_applications"
    __table_args__ = (
        Index(
            "uq_creator_applications_open_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'approved')"),
            sqlite_where=text("status IN ('pending', 'approved')"),
        ),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    artist_name: str = Field(max_length=100)
    application_reason: str
    portfolio_url: str | None = None

    sample_tracks: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    status: str = Field(
        default=APPLICATION_PENDING,
        index=True,
        description="pending | approved | rejected",
    )

    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )

    reviewed_at: datetime | None = None
    reviewed_by: uuid.UUID | None = Field(default=None, foreign_key="users.id")
    admin_notes: str | None = None
    rejection_reason: str | None = None
