# music_combinators/services/follow_service.py
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from music_combinators.core.errors import ConflictError, NotFoundError, ValidationError
from music_combinators.models.engagement import Follow
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.repositories.follow_repo import FollowRepository
from music_combinators.schemas.account import FollowEntry
from music_combinators.schemas.common import Page, Pagination


class FollowService:
    """
    Directed follow graph between accounts.

    Rules:
      - no self-follow
      - at most one edge per (follower, following); the unique
        constraint backs the pre-check under concurrency
      - unfollow is idempotent
    """

    def __init__(self, repo: FollowRepository, account_repo: AccountRepository):
        self.repo = repo
        self.account_repo = account_repo

    def _require_target(self, session: Session, user_id: uuid.UUID) -> None:
        if self.account_repo.get_by_id(session, user_id) is None:
            raise NotFoundError("User not found")

    def follow(
        self,
        session: Session,
        follower_id: uuid.UUID,
        following_id: uuid.UUID,
    ) -> None:
        if follower_id == following_id:
            raise ValidationError("You cannot follow yourself")

        self._require_target(session, following_id)

        if self.repo.exists(session, follower_id, following_id):
            raise ConflictError("Already following this user")

        try:
            self.repo.create(
                session,
                Follow(follower_id=follower_id, following_id=following_id),
            )
        except IntegrityError:
            session.rollback()
            raise ConflictError("Already following this user")

    def unfollow(
        self,
        session: Session,
        follower_id: uuid.UUID,
        following_id: uuid.UUID,
    ) -> None:
        """Remove the edge if present; a missing edge is not an error."""
        self.repo.delete_pair(session, follower_id, following_id)

    def list_followers(
        self,
        session: Session,
        user_id: uuid.UUID,
        page: int,
        limit: int,
    ) -> Page[FollowEntry]:
        self._require_target(session, user_id)
        rows = self.repo.list_followers(
            session, user_id, skip=(page - 1) * limit, limit=limit
        )
        total = self.repo.count_followers(session, user_id)
        return self._page(rows, page, limit, total)

    def list_following(
        self,
        session: Session,
        user_id: uuid.UUID,
        page: int,
        limit: int,
    ) -> Page[FollowEntry]:
        self._require_target(session, user_id)
        rows = self.repo.list_following(
            session, user_id, skip=(page - 1) * limit, limit=limit
        )
        total = self.repo.count_following(session, user_id)
        return self._page(rows, page, limit, total)

    @staticmethod
    def _page(rows, page: int, limit: int, total: int) -> Page[FollowEntry]:
        items = [
            FollowEntry(
                id=profile.id,
                username=profile.username,
                display_name=profile.display_name,
                artist_name=profile.artist_name,
                avatar_url=profile.avatar_url,
                followed_at=followed_at,
            )
            for profile, followed_at in rows
        ]
        return Page[FollowEntry](
            items=items,
            pagination=Pagination.build(page, limit, total),
        )
