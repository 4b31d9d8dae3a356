# music_combinators/repositories/like_repo.py
import uuid
from datetime import datetime

from sqlalchemy import and_, delete, func
from sqlmodel import Session, select

from music_combinators.models.account import Profile
from music_combinators.models.engagement import Like


class LikeRepository:
    """
    Data access layer for likes.

    NOTE:
      - No commits here; a like change and its like_count adjustment
        must land in the same transaction. The service commits.
    """

    def exists(
        self,
        session: Session,
        user_id: uuid.UUID,
        content_type: str,
        content_id: uuid.UUID,
    ) -> bool:
        stmt = (
            select(Like.id)
            .where(Like.user_id == user_id)
            .where(Like.content_type == content_type)
            .where(Like.content_id == content_id)
        )
        return session.exec(stmt).first() is not None

    def remove(
        self,
        session: Session,
        user_id: uuid.UUID,
        content_type: str,
        content_id: uuid.UUID,
    ) -> int:
        """Delete the like if present. Returns rows deleted (0 or 1)."""
        stmt = (
            delete(Like)
            .where(Like.user_id == user_id)
            .where(Like.content_type == content_type)
            .where(Like.content_id == content_id)
        )
        return session.exec(stmt).rowcount

    def add(self, session: Session, like: Like) -> Like:
        """Insert and flush so a duplicate surfaces as IntegrityError here."""
        session.add(like)
        session.flush()
        return like

    def count_for_content(
        self,
        session: Session,
        content_type: str,
        content_id: uuid.UUID,
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(Like)
            .where(Like.content_type == content_type)
            .where(Like.content_id == content_id)
        )
        return int(session.exec(stmt).one() or 0)

    def list_liked(
        self,
        session: Session,
        user_id: uuid.UUID,
        model,
        content_type: str,
        skip: int = 0,
        limit: int = 20,
    ) -> list[tuple[object, Profile, datetime]]:
        """
        Active items of `model` liked by the user, most recent like first.
        """
        stmt = (
            select(model, Profile, Like.created_at)
            .join(
                Like,
                and_(Like.content_id == model.id, Like.content_type == content_type),
            )
            .join(Profile, Profile.id == model.user_id)
            .where(Like.user_id == user_id)
            .where(model.is_active == True)  # noqa: E712
            .order_by(Like.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def count_liked(
        self,
        session: Session,
        user_id: uuid.UUID,
        model,
        content_type: str,
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(Like)
            .join(
                model,
                and_(Like.content_id == model.id, Like.content_type == content_type),
            )
            .where(Like.user_id == user_id)
            .where(model.is_active == True)  # noqa: E712
        )
        return int(session.exec(stmt).one() or 0)
