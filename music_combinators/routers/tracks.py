# music_combinators/routers/tracks.py
import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session

from music_combinators.core.auth import (
    get_current_account,
    require_active,
    require_creator_or_admin,
)
from music_combinators.core.errors import ValidationError, first_error_message
from music_combinators.core.pagination import PageParams, get_page_params
from music_combinators.core.storage_utils import (
    MediaGateway,
    get_media_gateway,
    media_from_upload,
)
from music_combinators.database import get_session
from music_combinators.models.account import Account
from music_combinators.models.content import CONTENT_TRACK
from music_combinators.repositories.content_repo import ReelRepository, TrackRepository
from music_combinators.repositories.like_repo import LikeRepository
from music_combinators.schemas.common import ApiResponse, Page, ok
from music_combinators.schemas.content import (
    LikeToggleResult,
    TrackCreate,
    TrackRead,
    TrackUpdate,
)
from music_combinators.services.content_service import TrackService
from music_combinators.services.like_service import LikeService

router = APIRouter(prefix="/tracks", tags=["Tracks"])

repo = TrackRepository()
like_repo = LikeRepository()
like_service = LikeService(like_repo, repo, ReelRepository())


def get_track_service(
    gateway: MediaGateway = Depends(get_media_gateway),
) -> TrackService:
    return TrackService(repo, like_repo, gateway)


# -------- Public endpoints --------


@router.get("", response_model=ApiResponse[Page[TrackRead]])
def list_tracks(
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
    service: TrackService = Depends(get_track_service),
):
    """
    Active tracks, newest first.

    `is_liked` is filled in when the request carries a token.
    """
    return ok(service.list_all(session, paging.page, paging.limit, viewer))


@router.get("/search", response_model=ApiResponse[Page[TrackRead]])
def search_tracks(
    q: str | None = None,
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
    service: TrackService = Depends(get_track_service),
):
    """Case-insensitive title search. A blank `q` lists all tracks."""
    return ok(service.search(session, q, paging.page, paging.limit, viewer))


@router.get("/{track_id}", response_model=ApiResponse[TrackRead])
def get_track(
    track_id: uuid.UUID,
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
    service: TrackService = Depends(get_track_service),
):
    """
    Single track.

    Inactive tracks resolve only for their owner or an admin.
    """
    return ok(service.get(session, track_id, viewer))


@router.post("/{track_id}/play", response_model=ApiResponse[TrackRead])
def play_track(
    track_id: uuid.UUID,
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
    service: TrackService = Depends(get_track_service),
):
    """Record a play (best-effort) and return the track."""
    return ok(service.play(session, track_id, viewer))


# -------- Creator endpoints --------


@router.post(
    "",
    response_model=ApiResponse[TrackRead],
    status_code=status.HTTP_201_CREATED,
)
def create_track(
    title: str = Form(...),
    duration_seconds: int | None = Form(None),
    audio: UploadFile | None = File(None),
    cover: UploadFile | None = File(None),
    session: Session = Depends(get_session),
    current: Account = Depends(require_creator_or_admin),
    service: TrackService = Depends(get_track_service),
):
    """
    Upload a track (multipart/form-data).

    Fields:
      - title (required), duration_seconds
      - audio: mp3, <= 15MB (required)
      - cover: jpeg/png/webp, <= 5MB (optional)

    Auth:
      - active creator or admin
    """
    try:
        payload = TrackCreate(title=title, duration_seconds=duration_seconds)
    except PydanticValidationError as exc:
        raise ValidationError(first_error_message(exc.errors()))

    return ok(
        service.create(
            session,
            current.id,
            payload,
            audio=media_from_upload(audio),
            cover=media_from_upload(cover),
        )
    )


@router.patch("/{track_id}", response_model=ApiResponse[TrackRead])
def update_track(
    track_id: uuid.UUID,
    payload: TrackUpdate,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
    service: TrackService = Depends(get_track_service),
):
    """Edit title or visibility of one of your own tracks."""
    return ok(service.update(session, track_id, current.id, payload))


@router.delete("/{track_id}", response_model=ApiResponse[None])
def delete_track(
    track_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
    service: TrackService = Depends(get_track_service),
):
    """Delete one of your own tracks and its stored media."""
    service.delete(session, track_id, current.id)
    return ok()


@router.post("/{track_id}/like", response_model=ApiResponse[LikeToggleResult])
def toggle_like(
    track_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
):
    """Like the track, or remove an existing like."""
    return ok(like_service.toggle(session, current.id, CONTENT_TRACK, track_id))
