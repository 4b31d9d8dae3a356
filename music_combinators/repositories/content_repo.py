# music_combinators/repositories/content_repo.py
import uuid
from typing import Generic, TypeVar

from sqlalchemy import delete, func, update
from sqlmodel import Session, select

from music_combinators.models.account import Profile
from music_combinators.models.content import Reel, Track
from music_combinators.models.engagement import Like
from music_combinators.repositories.account_repo import like_pattern

ContentT = TypeVar("ContentT", Track, Reel)


class ContentRepository(Generic[ContentT]):
    """
    Data access layer shared by tracks and reels.

    - Listing queries join the owner's Profile for creator info.
    - like_count adjustments do NOT commit; the like service commits them
      together with the Like row change.
    """

    def __init__(self, model: type[ContentT], content_type: str, counter_field: str):
        self.model = model
        self.content_type = content_type
        self.counter_field = counter_field

    # ----- Reads -----

    def get_by_id(self, session: Session, content_id: uuid.UUID) -> ContentT | None:
        return session.get(self.model, content_id)

    def get_with_creator(
        self,
        session: Session,
        content_id: uuid.UUID,
    ) -> tuple[ContentT, Profile] | None:
        stmt = (
            select(self.model, Profile)
            .join(Profile, Profile.id == self.model.user_id)
            .where(self.model.id == content_id)
        )
        return session.exec(stmt).first()

    def list_active(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 20,
        title_query: str | None = None,
    ) -> list[tuple[ContentT, Profile]]:
        """Active items, newest first, optionally filtered by title."""
        stmt = (
            select(self.model, Profile)
            .join(Profile, Profile.id == self.model.user_id)
            .where(self.model.is_active == True)  # noqa: E712
        )
        if title_query:
            stmt = stmt.where(
                self.model.title.ilike(like_pattern(title_query), escape="\\")
            )
        stmt = stmt.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def count_active(self, session: Session, title_query: str | None = None) -> int:
        stmt = (
            select(func.count())
            .select_from(self.model)
            .where(self.model.is_active == True)  # noqa: E712
        )
        if title_query:
            stmt = stmt.where(
                self.model.title.ilike(like_pattern(title_query), escape="\\")
            )
        return int(session.exec(stmt).one() or 0)

    def list_for_owner(
        self,
        session: Session,
        owner_id: uuid.UUID,
        include_inactive: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> list[tuple[ContentT, Profile]]:
        stmt = (
            select(self.model, Profile)
            .join(Profile, Profile.id == self.model.user_id)
            .where(self.model.user_id == owner_id)
        )
        if not include_inactive:
            stmt = stmt.where(self.model.is_active == True)  # noqa: E712
        stmt = stmt.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def count_for_owner(
        self,
        session: Session,
        owner_id: uuid.UUID,
        include_inactive: bool = False,
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(self.model)
            .where(self.model.user_id == owner_id)
        )
        if not include_inactive:
            stmt = stmt.where(self.model.is_active == True)  # noqa: E712
        return int(session.exec(stmt).one() or 0)

    # ----- Writes -----

    def create(self, session: Session, item: ContentT) -> ContentT:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def update(self, session: Session, item: ContentT) -> ContentT:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete(self, session: Session, item: ContentT) -> None:
        """Delete the row and every Like pointing at it in one commit."""
        session.exec(
            delete(Like)
            .where(Like.content_type == self.content_type)
            .where(Like.content_id == item.id)
        )
        session.delete(item)
        session.commit()

    def increment_counter(self, session: Session, content_id: uuid.UUID) -> int:
        """play_count / view_count += 1 on an active item."""
        column = getattr(self.model, self.counter_field)
        stmt = (
            update(self.model)
            .where(self.model.id == content_id)
            .where(self.model.is_active == True)  # noqa: E712
            .values({self.counter_field: column + 1})
        )
        rowcount = session.exec(stmt).rowcount
        session.commit()
        return rowcount

    def adjust_like_count(
        self,
        session: Session,
        content_id: uuid.UUID,
        delta: int,
    ) -> int:
        stmt = (
            update(self.model)
            .where(self.model.id == content_id)
            .values(like_count=self.model.like_count + delta)
        )
        return session.exec(stmt).rowcount


class TrackRepository(ContentRepository[Track]):
    def __init__(self):
        super().__init__(Track, "track", "play_count")


class ReelRepository(ContentRepository[Reel]):
    def __init__(self):
        super().__init__(Reel, "reel", "view_count")
