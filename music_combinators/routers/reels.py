# music_combinators/routers/reels.py
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
from music_combinators.models.content import CONTENT_REEL
from music_combinators.repositories.content_repo import ReelRepository, TrackRepository
from music_combinators.repositories.like_repo import LikeRepository
from music_combinators.schemas.common import ApiResponse, Page, ok
from music_combinators.schemas.content import (
    LikeToggleResult,
    ReelCreate,
    ReelRead,
    ReelUpdate,
)
from music_combinators.services.content_service import ReelService
from music_combinators.services.like_service import LikeService

router = APIRouter(prefix="/reels", tags=["Reels"])

repo = ReelRepository()
like_repo = LikeRepository()
like_service = LikeService(like_repo, TrackRepository(), repo)


def get_reel_service(
    gateway: MediaGateway = Depends(get_media_gateway),
) -> ReelService:
    return ReelService(repo, like_repo, gateway)


@router.get("/feed", response_model=ApiResponse[Page[ReelRead]])
def reel_feed(
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
    service: ReelService = Depends(get_reel_service),
):
    """Active reels, newest first."""
    return ok(service.feed(session, paging.page, paging.limit, viewer))


@router.get("/{reel_id}", response_model=ApiResponse[ReelRead])
def get_reel(
    reel_id: uuid.UUID,
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
    service: ReelService = Depends(get_reel_service),
):
    return ok(service.get(session, reel_id, viewer))


@router.post("/{reel_id}/view", response_model=ApiResponse[ReelRead])
def view_reel(
    reel_id: uuid.UUID,
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
    service: ReelService = Depends(get_reel_service),
):
    """Record a view (best-effort) and return the reel."""
    return ok(service.view(session, reel_id, viewer))


@router.post(
    "",
    response_model=ApiResponse[ReelRead],
    status_code=status.HTTP_201_CREATED,
)
def create_reel(
    caption: str | None = Form(None),
    video: UploadFile | None = File(None),
    session: Session = Depends(get_session),
    current: Account = Depends(require_creator_or_admin),
    service: ReelService = Depends(get_reel_service),
):
    """
    Upload a reel (multipart/form-data).

    Fields:
      - caption (optional)
      - video: mp4, <= 50MB, up to 60s (required)
    """
    try:
        payload = ReelCreate(caption=caption)
    except PydanticValidationError as exc:
        raise ValidationError(first_error_message(exc.errors()))

    return ok(service.create(session, current.id, payload, video=media_from_upload(video)))


@router.patch("/{reel_id}", response_model=ApiResponse[ReelRead])
def update_reel(
    reel_id: uuid.UUID,
    payload: ReelUpdate,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
    service: ReelService = Depends(get_reel_service),
):
    return ok(service.update(session, reel_id, current.id, payload))


@router.delete("/{reel_id}", response_model=ApiResponse[None])
def delete_reel(
    reel_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
    service: ReelService = Depends(get_reel_service),
):
    service.delete(session, reel_id, current.id)
    return ok()


@router.post("/{reel_id}/like", response_model=ApiResponse[LikeToggleResult])
def toggle_like(
    reel_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
):
    """Like the reel, or remove an existing like."""
    return ok(like_service.toggle(session, current.id, CONTENT_REEL, reel_id))
