# music_combinators/routers/admin.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from music_combinators.core.auth import require_admin
from music_combinators.core.pagination import PageParams, get_page_params
from music_combinators.database import get_session
from music_combinators.models.account import Account
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.repositories.setting_repo import SettingRepository
from music_combinators.repositories.stats_repo import StatsRepository
from music_combinators.routers.reels import get_reel_service
from music_combinators.routers.tracks import get_track_service
from music_combinators.schemas.account import AccountRead
from music_combinators.schemas.admin import (
    ApprovedAccount,
    BanRequest,
    BatchApproveRequest,
    BatchApproveResult,
    SettingsUpdate,
    WaitlistEntry,
)
from music_combinators.schemas.common import ApiResponse, Page, ok
from music_combinators.schemas.content import ReelRead, TrackRead, VisibilityUpdate
from music_combinators.schemas.stats import PlatformStats
from music_combinators.services.admin_service import AdminService
from music_combinators.services.content_service import ReelService, TrackService
from music_combinators.services.notification_service import Notifier, get_notifier
from music_combinators.services.stats_service import StatsService

# Every route here is admin-only
router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)

account_repo = AccountRepository()
setting_repo = SettingRepository()
stats_service = StatsService(StatsRepository())


def get_admin_service(notifier: Notifier = Depends(get_notifier)) -> AdminService:
    return AdminService(account_repo, setting_repo, notifier)


# -------- Waitlist --------


@router.get("/waitlist", response_model=ApiResponse[Page[WaitlistEntry]])
def list_waitlist(
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    service: AdminService = Depends(get_admin_service),
):
    """Waitlisted accounts in signup order."""
    return ok(service.list_waitlist(session, paging.page, paging.limit))


@router.post("/users/approve-batch", response_model=ApiResponse[BatchApproveResult])
def approve_batch(
    payload: BatchApproveRequest | None = None,
    session: Session = Depends(get_session),
    service: AdminService = Depends(get_admin_service),
):
    """
    Approve the N oldest waitlisted accounts (FIFO).

    `count` defaults to the onboarding_batch_size setting.
    """
    return ok(service.batch_approve(session, payload.count if payload else None))


@router.post("/users/{user_id}/approve", response_model=ApiResponse[ApprovedAccount])
def approve_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: AdminService = Depends(get_admin_service),
):
    return ok(service.approve_user(session, user_id))


# -------- Ban / unban --------


@router.post("/users/{user_id}/ban", response_model=ApiResponse[AccountRead])
def ban_user(
    user_id: uuid.UUID,
    payload: BanRequest | None = None,
    session: Session = Depends(get_session),
    admin: Account = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return ok(service.ban(session, admin.id, user_id, payload.reason if payload else None))


@router.post("/users/{user_id}/unban", response_model=ApiResponse[AccountRead])
def unban_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: AdminService = Depends(get_admin_service),
):
    return ok(service.unban(session, user_id))


# -------- Content moderation --------


@router.delete("/tracks/{track_id}", response_model=ApiResponse[None])
def delete_track(
    track_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: TrackService = Depends(get_track_service),
):
    """Hard-delete any track, bypassing ownership."""
    service.admin_delete(session, track_id)
    return ok()


@router.delete("/reels/{reel_id}", response_model=ApiResponse[None])
def delete_reel(
    reel_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: ReelService = Depends(get_reel_service),
):
    service.admin_delete(session, reel_id)
    return ok()


@router.patch("/tracks/{track_id}", response_model=ApiResponse[TrackRead])
def set_track_visibility(
    track_id: uuid.UUID,
    payload: VisibilityUpdate,
    session: Session = Depends(get_session),
    service: TrackService = Depends(get_track_service),
):
    """Soft takedown (is_active=false) or restore."""
    return ok(service.set_active(session, track_id, payload.is_active))


@router.patch("/reels/{reel_id}", response_model=ApiResponse[ReelRead])
def set_reel_visibility(
    reel_id: uuid.UUID,
    payload: VisibilityUpdate,
    session: Session = Depends(get_session),
    service: ReelService = Depends(get_reel_service),
):
    return ok(service.set_active(session, reel_id, payload.is_active))


# -------- Platform --------


@router.get("/stats", response_model=ApiResponse[PlatformStats])
def platform_stats(session: Session = Depends(get_session)):
    """User, content and review-queue counters."""
    return ok(stats_service.get_platform_stats(session))


@router.get("/settings", response_model=ApiResponse[dict[str, str]])
def get_settings(
    session: Session = Depends(get_session),
    service: AdminService = Depends(get_admin_service),
):
    return ok(service.get_settings(session))


@router.put("/settings", response_model=ApiResponse[dict[str, str]])
def update_settings(
    payload: SettingsUpdate,
    session: Session = Depends(get_session),
    service: AdminService = Depends(get_admin_service),
):
    """
    Update platform settings.

    Known keys: onboarding_batch_size (1-100), max_active_users (>= 1).
    """
    return ok(service.update_settings(session, payload.settings))
