# music_combinators/routers/applications.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from music_combinators.core.auth import require_active, require_admin
from music_combinators.core.pagination import PageParams, get_page_params
from music_combinators.database import get_session
from music_combinators.models.account import Account
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.repositories.application_repo import ApplicationRepository
from music_combinators.schemas.application import (
    ApplicationCreate,
    ApplicationRead,
    ApplicationReview,
    ApplicationReviewResult,
    ApplicationStatus,
)
from music_combinators.schemas.common import ApiResponse, Page, ok
from music_combinators.services.application_service import ApplicationService
from music_combinators.services.notification_service import Notifier, get_notifier

router = APIRouter(prefix="/applications", tags=["Creator Applications"])

repo = ApplicationRepository()
account_repo = AccountRepository()


def get_application_service(
    notifier: Notifier = Depends(get_notifier),
) -> ApplicationService:
    return ApplicationService(repo, account_repo, notifier)


# -------- Applicant endpoints --------


@router.post(
    "",
    response_model=ApiResponse[ApplicationRead],
    status_code=status.HTTP_201_CREATED,
)
def submit_application(
    payload: ApplicationCreate,
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
    service: ApplicationService = Depends(get_application_service),
):
    """
    Apply to become a creator.

    Rules:
      - artist_name 2-100 chars, application_reason 50-2000 chars
      - only one pending or approved application per user
    """
    return ok(service.submit(session, current, payload))


@router.get("/me", response_model=ApiResponse[ApplicationRead | None])
def my_application(
    session: Session = Depends(get_session),
    current: Account = Depends(require_active),
    service: ApplicationService = Depends(get_application_service),
):
    """The caller's most recent application, or null."""
    return ok(service.get_mine(session, current.id))


# -------- Admin endpoints --------


@router.get(
    "/pending",
    response_model=ApiResponse[Page[ApplicationRead]],
    dependencies=[Depends(require_admin)],
)
def list_pending(
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    service: ApplicationService = Depends(get_application_service),
):
    """Review queue, oldest first."""
    return ok(service.list_pending(session, paging.page, paging.limit))


@router.get(
    "",
    response_model=ApiResponse[Page[ApplicationRead]],
    dependencies=[Depends(require_admin)],
)
def list_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    user_id: uuid.UUID | None = None,
    paging: PageParams = Depends(get_page_params),
    session: Session = Depends(get_session),
    service: ApplicationService = Depends(get_application_service),
):
    """All applications, newest first, optionally filtered."""
    return ok(
        service.list_all(
            session,
            paging.page,
            paging.limit,
            status=status_filter,
            user_id=user_id,
        )
    )


@router.put(
    "/{application_id}/review",
    response_model=ApiResponse[ApplicationReviewResult],
)
def review_application(
    application_id: uuid.UUID,
    payload: ApplicationReview,
    session: Session = Depends(get_session),
    admin: Account = Depends(require_admin),
    service: ApplicationService = Depends(get_application_service),
):
    """
    Approve or reject a pending application.

    Approval also promotes the applicant to creator.
    """
    return ok(service.review(session, application_id, admin.id, payload))
