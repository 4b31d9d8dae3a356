# music_combinators/services/like_service.py
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from music_combinators.core.errors import NotFoundError, ValidationError
from music_combinators.models.content import CONTENT_REEL, CONTENT_TRACK, Reel, Track
from music_combinators.models.engagement import Like
from music_combinators.repositories.content_repo import (
    ContentRepository,
    ReelRepository,
    TrackRepository,
)
from music_combinators.repositories.like_repo import LikeRepository
from music_combinators.schemas.common import Page, Pagination
from music_combinators.schemas.content import (
    LikedReelRead,
    LikedTrackRead,
    LikeToggleResult,
)
from music_combinators.services.content_service import content_read

logger = logging.getLogger(__name__)


class LikeService:
    """
    Like toggle and "liked by me" listings.

    Invariant:
      content.like_count == number of Like rows for that content.
      Every Like insert/delete and its ±1 counter update are committed
      in one transaction.
    """

    def __init__(
        self,
        repo: LikeRepository,
        track_repo: TrackRepository,
        reel_repo: ReelRepository,
    ):
        self.repo = repo
        self.content_repos: dict[str, ContentRepository] = {
            CONTENT_TRACK: track_repo,
            CONTENT_REEL: reel_repo,
        }

    def _content_repo(self, content_type: str) -> ContentRepository:
        repo = self.content_repos.get(content_type)
        if repo is None:
            raise ValidationError("Content type must be 'track' or 'reel'")
        return repo

    def toggle(
        self,
        session: Session,
        user_id: uuid.UUID,
        content_type: str,
        content_id: uuid.UUID,
    ) -> LikeToggleResult:
        """
        Like if not yet liked, otherwise unlike.

        A racing duplicate insert from the same user hits the unique
        constraint; that request rolls back and reports the like that
        already landed, so the net effect is a single like.
        """
        content_repo = self._content_repo(content_type)
        item = content_repo.get_by_id(session, content_id)
        if item is None or not item.is_active:
            raise NotFoundError(f"{content_type.capitalize()} not found")

        try:
            if self.repo.remove(session, user_id, content_type, content_id):
                content_repo.adjust_like_count(session, content_id, -1)
                liked = False
            else:
                self.repo.add(
                    session,
                    Like(
                        user_id=user_id,
                        content_type=content_type,
                        content_id=content_id,
                    ),
                )
                content_repo.adjust_like_count(session, content_id, 1)
                liked = True
            session.commit()
        except IntegrityError:
            session.rollback()
            logger.info(
                "Concurrent like on %s %s by %s resolved to existing row",
                content_type,
                content_id,
                user_id,
            )
            liked = True

        session.expire_all()
        item = content_repo.get_by_id(session, content_id)
        return LikeToggleResult(liked=liked, like_count=item.like_count if item else 0)

    def _list_liked(
        self,
        session: Session,
        user_id: uuid.UUID,
        model,
        content_type: str,
        read_schema,
        page: int,
        limit: int,
    ):
        rows = self.repo.list_liked(
            session,
            user_id,
            model,
            content_type,
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = self.repo.count_liked(session, user_id, model, content_type)
        items = [
            content_read(read_schema, item, profile, is_liked=True, liked_at=liked_at)
            for item, profile, liked_at in rows
        ]
        return Page[read_schema](
            items=items,
            pagination=Pagination.build(page, limit, total),
        )

    def list_liked_tracks(
        self,
        session: Session,
        user_id: uuid.UUID,
        page: int,
        limit: int,
    ) -> Page[LikedTrackRead]:
        return self._list_liked(
            session, user_id, Track, CONTENT_TRACK, LikedTrackRead, page, limit
        )

    def list_liked_reels(
        self,
        session: Session,
        user_id: uuid.UUID,
        page: int,
        limit: int,
    ) -> Page[LikedReelRead]:
        return self._list_liked(
            session, user_id, Reel, CONTENT_REEL, LikedReelRead, page, limit
        )
