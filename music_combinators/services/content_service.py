# music_combinators/services/content_service.py
import logging
import uuid
from typing import Callable

from sqlmodel import Session

from music_combinators.core.errors import NotFoundError
from music_combinators.core.storage_utils import (
    MediaCategory,
    MediaGateway,
    MediaUpload,
    validate_media,
)
from music_combinators.models.account import Account, Profile, ROLE_ADMIN
from music_combinators.models.content import Reel, Track
from music_combinators.repositories.content_repo import (
    ContentRepository,
    ReelRepository,
    TrackRepository,
)
from music_combinators.repositories.like_repo import LikeRepository
from music_combinators.schemas.common import Page, Pagination
from music_combinators.schemas.content import (
    ContentRead,
    CreatorSummary,
    ReelCreate,
    ReelRead,
    ReelUpdate,
    TrackCreate,
    TrackRead,
    TrackUpdate,
)

logger = logging.getLogger(__name__)


def creator_summary(profile: Profile | None) -> CreatorSummary | None:
    if profile is None:
        return None
    return CreatorSummary(
        username=profile.username,
        display_name=profile.display_name,
        artist_name=profile.artist_name,
        avatar_url=profile.avatar_url,
    )


def content_read(schema, item, profile: Profile | None, **extra):
    """Build a read model from a Track/Reel row plus its owner profile."""
    return schema.model_validate(
        item,
        update={"creator": creator_summary(profile), **extra},
    )


class ContentService:
    """
    Lifecycle shared by tracks and reels.

    Responsibilities:
      - upload media, then insert the row; on failure delete what was
        uploaded and re-raise the original error
      - visibility: listings show active items only; a single inactive
        item resolves only for its owner or an admin
      - ownership gate on update/delete (missing and not-yours are the
        same NotFound)
      - best-effort play/view counters
    """

    label = "Content"
    read_schema: type[ContentRead] = ContentRead

    def __init__(
        self,
        repo: ContentRepository,
        like_repo: LikeRepository,
        gateway: MediaGateway,
    ):
        self.repo = repo
        self.like_repo = like_repo
        self.gateway = gateway

    # ---- subclass hooks ----

    def media_urls(self, item) -> list[str]:
        raise NotImplementedError

    # ---- internal helpers ----

    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.label} not found")

    def _not_found_or_unauthorized(self) -> NotFoundError:
        return NotFoundError(f"{self.label} not found or unauthorized")

    @staticmethod
    def _sees_inactive(item, viewer: Account | None) -> bool:
        if viewer is None:
            return False
        return viewer.id == item.user_id or viewer.role == ROLE_ADMIN

    def to_read(self, item, profile: Profile | None, is_liked: bool | None = None):
        return content_read(self.read_schema, item, profile, is_liked=is_liked)

    def _is_liked(self, session: Session, viewer: Account | None, item) -> bool | None:
        if viewer is None:
            return None
        return self.like_repo.exists(session, viewer.id, self.repo.content_type, item.id)

    def _page(self, session: Session, rows, page: int, limit: int, total: int, viewer):
        items = [
            self.to_read(item, profile, self._is_liked(session, viewer, item))
            for item, profile in rows
        ]
        return Page[self.read_schema](
            items=items,
            pagination=Pagination.build(page, limit, total),
        )

    def discard_media(self, urls: list[str]) -> None:
        """Best-effort delete of stored objects; failures are only logged."""
        for url in urls:
            try:
                self.gateway.delete(url)
            except Exception:
                logger.warning("Failed to delete media object %s", url, exc_info=True)

    def _create(
        self,
        session: Session,
        owner_id: uuid.UUID,
        uploads: list[tuple[MediaCategory, MediaUpload]],
        build: Callable[[list[str]], object],
    ):
        """
        Upload every payload in order, then insert the row built from
        the returned URLs.
        """
        # Reject bad payloads before anything reaches storage
        for category, upload in uploads:
            validate_media(category, upload)

        urls: list[str] = []
        try:
            for category, upload in uploads:
                urls.append(self.gateway.put(category, str(owner_id), upload))
            item = self.repo.create(session, build(urls))
        except Exception:
            session.rollback()
            if urls:
                logger.warning(
                    "%s insert failed for owner %s; removing %d uploaded object(s)",
                    self.label,
                    owner_id,
                    len(urls),
                )
            self.discard_media(urls)
            raise

        logger.info("%s %s created by %s", self.label, item.id, owner_id)
        return item

    # ---- reads ----

    def get(self, session: Session, content_id: uuid.UUID, viewer: Account | None = None):
        row = self.repo.get_with_creator(session, content_id)
        if row is None:
            raise self._not_found()
        item, profile = row
        if not item.is_active and not self._sees_inactive(item, viewer):
            raise self._not_found()
        return self.to_read(item, profile, self._is_liked(session, viewer, item))

    def list_all(
        self,
        session: Session,
        page: int,
        limit: int,
        viewer: Account | None = None,
    ):
        """Active items, newest first."""
        rows = self.repo.list_active(session, skip=(page - 1) * limit, limit=limit)
        total = self.repo.count_active(session)
        return self._page(session, rows, page, limit, total, viewer)

    def list_for_owner(
        self,
        session: Session,
        owner_id: uuid.UUID,
        page: int,
        limit: int,
        viewer: Account | None = None,
    ):
        """
        One account's items. The owner and admins also see inactive ones.
        """
        include_inactive = viewer is not None and (
            viewer.id == owner_id or viewer.role == ROLE_ADMIN
        )
        rows = self.repo.list_for_owner(
            session,
            owner_id,
            include_inactive=include_inactive,
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = self.repo.count_for_owner(
            session, owner_id, include_inactive=include_inactive
        )
        return self._page(session, rows, page, limit, total, viewer)

    # ---- writes ----

    def update(
        self,
        session: Session,
        content_id: uuid.UUID,
        owner_id: uuid.UUID,
        payload,
    ):
        item = self.repo.get_by_id(session, content_id)
        if item is None or item.user_id != owner_id:
            raise self._not_found_or_unauthorized()

        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(item, field, value)
        item = self.repo.update(session, item)

        row = self.repo.get_with_creator(session, item.id)
        return self.to_read(item, row[1] if row else None)

    def set_active(self, session: Session, content_id: uuid.UUID, is_active: bool):
        """Admin takedown / restore; no ownership gate."""
        item = self.repo.get_by_id(session, content_id)
        if item is None:
            raise self._not_found()
        item.is_active = is_active
        item = self.repo.update(session, item)
        logger.info(
            "%s %s %s by admin",
            self.label,
            item.id,
            "restored" if is_active else "taken down",
        )
        row = self.repo.get_with_creator(session, item.id)
        return self.to_read(item, row[1] if row else None)

    def _delete_item(self, session: Session, item) -> None:
        urls = self.media_urls(item)
        self.repo.delete(session, item)
        # Row is gone; orphaned blobs are preferable to a half-deleted row
        self.discard_media(urls)

    def delete(self, session: Session, content_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        item = self.repo.get_by_id(session, content_id)
        if item is None or item.user_id != owner_id:
            raise self._not_found_or_unauthorized()
        self._delete_item(session, item)

    def admin_delete(self, session: Session, content_id: uuid.UUID) -> None:
        item = self.repo.get_by_id(session, content_id)
        if item is None:
            raise self._not_found()
        self._delete_item(session, item)
        logger.info("%s %s deleted by admin", self.label, content_id)

    def record_access(self, session: Session, content_id: uuid.UUID) -> None:
        """
        Bump play_count / view_count. Never raises.
        """
        try:
            self.repo.increment_counter(session, content_id)
        except Exception:
            session.rollback()
            logger.warning(
                "Failed to increment %s for %s %s",
                self.repo.counter_field,
                self.label.lower(),
                content_id,
                exc_info=True,
            )


class TrackService(ContentService):
    label = "Track"
    read_schema = TrackRead

    def __init__(
        self,
        repo: TrackRepository,
        like_repo: LikeRepository,
        gateway: MediaGateway,
    ):
        super().__init__(repo, like_repo, gateway)

    def media_urls(self, item: Track) -> list[str]:
        return [url for url in (item.audio_url, item.cover_url) if url]

    def create(
        self,
        session: Session,
        owner_id: uuid.UUID,
        payload: TrackCreate,
        audio: MediaUpload | None,
        cover: MediaUpload | None = None,
    ) -> TrackRead:
        """
        Upload audio (and optional cover art), then insert the track.

        Raises:
            ValidationError: if audio is missing or any payload is invalid.
        """
        uploads: list[tuple[MediaCategory, MediaUpload]] = [("audio", audio)]
        if cover is not None:
            uploads.append(("image", cover))

        def build(urls: list[str]) -> Track:
            return Track(
                user_id=owner_id,
                title=payload.title,
                duration_seconds=payload.duration_seconds,
                audio_url=urls[0],
                cover_url=urls[1] if len(urls) > 1 else None,
            )

        track = self._create(session, owner_id, uploads, build)
        row = self.repo.get_with_creator(session, track.id)
        return self.to_read(track, row[1] if row else None)

    def search(
        self,
        session: Session,
        query: str | None,
        page: int,
        limit: int,
        viewer: Account | None = None,
    ) -> Page[TrackRead]:
        """Title substring search; a blank query lists everything."""
        query = (query or "").strip()
        if not query:
            return self.list_all(session, page, limit, viewer)

        rows = self.repo.list_active(
            session, skip=(page - 1) * limit, limit=limit, title_query=query
        )
        total = self.repo.count_active(session, title_query=query)
        return self._page(session, rows, page, limit, total, viewer)

    def play(
        self,
        session: Session,
        content_id: uuid.UUID,
        viewer: Account | None = None,
    ) -> TrackRead:
        track = self.get(session, content_id, viewer)
        self.record_access(session, content_id)
        return track

    def update(
        self,
        session: Session,
        content_id: uuid.UUID,
        owner_id: uuid.UUID,
        payload: TrackUpdate,
    ) -> TrackRead:
        return super().update(session, content_id, owner_id, payload)


class ReelService(ContentService):
    label = "Reel"
    read_schema = ReelRead

    def __init__(
        self,
        repo: ReelRepository,
        like_repo: LikeRepository,
        gateway: MediaGateway,
    ):
        super().__init__(repo, like_repo, gateway)

    def media_urls(self, item: Reel) -> list[str]:
        return [item.video_url] if item.video_url else []

    def create(
        self,
        session: Session,
        owner_id: uuid.UUID,
        payload: ReelCreate,
        video: MediaUpload | None,
    ) -> ReelRead:
        def build(urls: list[str]) -> Reel:
            return Reel(user_id=owner_id, caption=payload.caption, video_url=urls[0])

        reel = self._create(session, owner_id, [("video", video)], build)
        row = self.repo.get_with_creator(session, reel.id)
        return self.to_read(reel, row[1] if row else None)

    def feed(
        self,
        session: Session,
        page: int,
        limit: int,
        viewer: Account | None = None,
    ) -> Page[ReelRead]:
        return self.list_all(session, page, limit, viewer)

    def view(
        self,
        session: Session,
        content_id: uuid.UUID,
        viewer: Account | None = None,
    ) -> ReelRead:
        reel = self.get(session, content_id, viewer)
        self.record_access(session, content_id)
        return reel

    def update(
        self,
        session: Session,
        content_id: uuid.UUID,
        owner_id: uuid.UUID,
        payload: ReelUpdate,
    ) -> ReelRead:
        return super().update(session, content_id, owner_id, payload)
