# music_combinators/repositories/follow_repo.py
import uuid
from datetime import datetime

from sqlalchemy import delete, func
from sqlmodel import Session, select

from music_combinators.models.account import Profile
from music_combinators.models.engagement import Follow


class FollowRepository:
    """Data access layer for the follow graph."""

    def exists(
        self,
        session: Session,
        follower_id: uuid.UUID,
        following_id: uuid.UUID,
    ) -> bool:
        stmt = (
            select(Follow.id)
            .where(Follow.follower_id == follower_id)
            .where(Follow.following_id == following_id)
        )
        return session.exec(stmt).first() is not None

    def create(self, session: Session, follow: Follow) -> Follow:
        session.add(follow)
        session.commit()
        session.refresh(follow)
        return follow

    def delete_pair(
        self,
        session: Session,
        follower_id: uuid.UUID,
        following_id: uuid.UUID,
    ) -> int:
        stmt = (
            delete(Follow)
            .where(Follow.follower_id == follower_id)
            .where(Follow.following_id == following_id)
        )
        rowcount = session.exec(stmt).rowcount
        session.commit()
        return rowcount

    def list_followers(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 20,
    ) -> list[tuple[Profile, datetime]]:
        """Profiles following `user_id`, newest relationship first."""
        stmt = (
            select(Profile, Follow.created_at)
            .join(Follow, Follow.follower_id == Profile.id)
            .where(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def list_following(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 20,
    ) -> list[tuple[Profile, datetime]]:
        """Profiles `user_id` follows, newest relationship first."""
        stmt = (
            select(Profile, Follow.created_at)
            .join(Follow, Follow.following_id == Profile.id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def count_followers(self, session: Session, user_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Follow)
            .where(Follow.following_id == user_id)
        )
        return int(session.exec(stmt).one() or 0)

    def count_following(self, session: Session, user_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Follow)
            .where(Follow.follower_id == user_id)
        )
        return int(session.exec(stmt).one() or 0)
