# music_combinators/routers/users.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from music_combinators.core.auth import (
    account_service,
    get_current_account,
    require_active,
    require_auth,
)
from music_combinators.core.pagination import PageParams, get_page_params
from music_combinators.database import get_session
from music_combinators.models.account import Account
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.repositories.content_repo import ReelRepository, TrackRepository
from music_combinators.repositories.follow_repo import FollowRepository
from music_combinators.repositories.like_repo import LikeRepository
from music_combinators.routers.reels import get_reel_service
from music_combinators.routers.tracks import get_track_service
from music_combinators.schemas.account import (
    AccountRead,
    FollowEntry,
    ProfileUpdate,
    PublicAccountRead,
    PublicProfileRead,
)
from music_combinators.schemas.common import ApiResponse, Page, ok
from music_combinators.schemas.content import (
    LikedReelRead,
    LikedTrackRead,
    ReelRead,
    TrackRead,
)
from music_combinators.services.content_service import ReelService, TrackService
from music_combinators.services.follow_service import FollowService
from music_combinators.services.like_service import LikeService

router = APIRouter(prefix="/users", tags=["Users"])

follow_service = FollowService(FollowRepository(), AccountRepository())
like_service = LikeService(LikeRepository(), TrackRepository(), ReelRepository())


# -------- Self profile --------
# Static paths are declared before /{user_id} so they are not parsed as ids.


@router.get("/me", response_model=ApiResponse[AccountRead])
def read_me(
    session: Session = Depends(get_session),
    current: Account = Depends(require_auth),
):
    """
    Return the caller's account, including role and status.

    Auth:
      - any valid token; waitlisted and banned accounts included
    """
    return ok(account_service.get_account(session, current.id))


@router.put("/me/profile", response_model=ApiResponse[AccountRead])
def update_my_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
):
    """
    Partial profile update.

    - username: unique, 3-50 chars, letters/digits/underscore
    - artist_name: creators only
    """
    return ok(account_service.update_profile(session, current, payload))


@router.get("/me/likes/tracks", response_model=ApiResponse[Page[LikedTrackRead]])
def my_liked_tracks(
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
):
    return ok(like_service.list_liked_tracks(session, current.id, paging.page, paging.limit))


@router.get("/me/likes/reels", response_model=ApiResponse[Page[LikedReelRead]])
def my_liked_reels(
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
):
    return ok(like_service.list_liked_reels(session, current.id, paging.page, paging.limit))


# -------- Discovery --------


@router.get("/search", response_model=ApiResponse[Page[PublicAccountRead]])
def search_users(
    q: str = "",
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
):
    """Search active accounts by username or artist name (min 2 chars)."""
    return ok(account_service.search(session, q, paging.page, paging.limit))


@router.get("/by-username/{username}", response_model=ApiResponse[PublicAccountRead])
def get_by_username(
    username: str,
    session: Session = Depends(get_session),
):
    return ok(account_service.get_by_username(session, username))


@router.get("/{user_id}", response_model=ApiResponse[PublicProfileRead])
def get_public_profile(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
):
    """Public profile with follower/following counts."""
    viewer_id = viewer.id if viewer else None
    return ok(account_service.get_public_profile(session, user_id, viewer_id))


@router.get("/{user_id}/tracks", response_model=ApiResponse[Page[TrackRead]])
def list_user_tracks(
    user_id: uuid.UUID,
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
    service: TrackService = Depends(get_track_service),
):
    """A user's tracks; the owner and admins also see inactive ones."""
    return ok(service.list_for_owner(session, user_id, paging.page, paging.limit, viewer))


@router.get("/{user_id}/reels", response_model=ApiResponse[Page[ReelRead]])
def list_user_reels(
    user_id: uuid.UUID,
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    viewer: Account | None = Depends(get_current_account),
    service: ReelService = Depends(get_reel_service),
):
    return ok(service.list_for_owner(session, user_id, paging.page, paging.limit, viewer))


# -------- Follow graph --------


@router.post(
    "/{user_id}/follow",
    response_model=ApiResponse[None],
    status_code=status.HTTP_201_CREATED,
)
def follow_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
):
    follow_service.follow(session, current.id, user_id)
    return ok()


@router.delete("/{user_id}/follow", response_model=ApiResponse[None])
def unfollow_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
):
    """Idempotent: unfollowing someone you don't follow succeeds."""
    follow_service.unfollow(session, current.id, user_id)
    return ok()


@router.get("/{user_id}/followers", response_model=ApiResponse[Page[FollowEntry]])
def list_followers(
    user_id: uuid.UUID,
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
):
    return ok(follow_service.list_followers(session, user_id, paging.page, paging.limit))


@router.get("/{user_id}/following", response_model=ApiResponse[Page[FollowEntry]])
def list_following(
    user_id: uuid.UUID,
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
):
    return ok(follow_service.list_following(session, user_id, paging.page, paging.limit))
