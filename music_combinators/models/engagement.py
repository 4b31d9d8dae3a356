# music_combinators/models/engagement.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import SQLModel, Field


class Like(SQLModel, table=True):
    """
    One like per (user, content_type, content_id).

    The unique constraint turns a racing duplicate insert into a rejected
    write; the like toggle relies on that.
    """

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "content_type",
            "content_id",
            name="uq_likes_user_content",
        ),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    # track | reel
    content_type: str = Field(index=True)
    content_id: uuid.UUID = Field(index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class Follow(SQLModel, table=True):
    """
    Directed follow edge. Counts are computed on read, never stored.
    """

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        CheckConstraint("follower_id <> following_id", name="ck_follows_not_self"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    follower_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    following_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
