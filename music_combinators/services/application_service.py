# music_combinators/services/application_service.py
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from music_combinators.core.errors import ConflictError, NotFoundError
from music_combinators.models.account import Account, ROLE_ADMIN, ROLE_CREATOR
from music_combinators.models.application import (
    APPLICATION_APPROVED,
    APPLICATION_PENDING,
    CreatorApplication,
)
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.repositories.application_repo import ApplicationRepository
from music_combinators.schemas.application import (
    ApplicationCreate,
    ApplicationRead,
    ApplicationReview,
    ApplicationReviewResult,
)
from music_combinators.schemas.common import Page, Pagination
from music_combinators.services.notification_service import (
    CREATOR_APPROVED,
    CREATOR_REJECTED,
    Notifier,
)

logger = logging.getLogger(__name__)


class ApplicationService:
    """
    Creator application workflow.

    States:
      pending -> approved | rejected   (single-shot, admin only)

    Rules:
      - at most one pending/approved application per user
      - approval promotes the applicant to creator in the same commit
        as the status change; if promotion is refused nothing is written
      - the applicant is emailed after the commit, best-effort
    """

    def __init__(
        self,
        repo: ApplicationRepository,
        account_repo: AccountRepository,
        notifier: Notifier,
    ):
        self.repo = repo
        self.account_repo = account_repo
        self.notifier = notifier

    @staticmethod
    def _to_read(application: CreatorApplication) -> ApplicationRead:
        return ApplicationRead.model_validate(application)

    def _page(self, rows, page: int, limit: int, total: int) -> Page[ApplicationRead]:
        return Page[ApplicationRead](
            items=[self._to_read(a) for a in rows],
            pagination=Pagination.build(page, limit, total),
        )

    # ---- applicant ----

    def submit(
        self,
        session: Session,
        account: Account,
        payload: ApplicationCreate,
    ) -> ApplicationRead:
        if account.role == ROLE_CREATOR:
            raise ConflictError("You are already a creator")
        if account.role == ROLE_ADMIN:
            raise ConflictError("Admins already have creator access")

        existing = self.repo.get_open_for_user(session, account.id)
        if existing is not None:
            if existing.status == APPLICATION_PENDING:
                raise ConflictError("You already have a pending application")
            raise ConflictError("You are already a creator")

        application = CreatorApplication(
            user_id=account.id,
            artist_name=payload.artist_name,
            application_reason=payload.application_reason,
            portfolio_url=payload.portfolio_url,
            sample_tracks=payload.sample_tracks,
        )
        try:
            application = self.repo.create(session, application)
        except IntegrityError:
            session.rollback()
            raise ConflictError("You already have a pending application")

        logger.info("Creator application %s submitted by %s", application.id, account.id)
        return self._to_read(application)

    def get_mine(self, session: Session, user_id: uuid.UUID) -> ApplicationRead | None:
        """Most recent application of the caller, if any."""
        application = self.repo.latest_for_user(session, user_id)
        return self._to_read(application) if application else None

    # ---- admin ----

    def list_pending(
        self,
        session: Session,
        page: int,
        limit: int,
    ) -> Page[ApplicationRead]:
        """Review queue, oldest submission first."""
        rows = self.repo.list(
            session,
            status=APPLICATION_PENDING,
            oldest_first=True,
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = self.repo.count(session, status=APPLICATION_PENDING)
        return self._page(rows, page, limit, total)

    def list_all(
        self,
        session: Session,
        page: int,
        limit: int,
        status: str | None = None,
        user_id: uuid.UUID | None = None,
    ) -> Page[ApplicationRead]:
        """Every application matching the filters, newest first."""
        rows = self.repo.list(
            session,
            status=status,
            user_id=user_id,
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = self.repo.count(session, status=status, user_id=user_id)
        return self._page(rows, page, limit, total)

    def review(
        self,
        session: Session,
        application_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        payload: ApplicationReview,
    ) -> ApplicationReviewResult:
        """
        Approve or reject a pending application.

        Raises:
            NotFoundError: if the application does not exist.
            ConflictError: if it was already reviewed, or the applicant
            is banned (approval only).
        """
        application = self.repo.get_by_id(session, application_id)
        if application is None:
            raise NotFoundError("Application not found")
        if application.status != APPLICATION_PENDING:
            raise ConflictError("Application has already been reviewed")

        approved = payload.decision == APPLICATION_APPROVED
        applicant_id = application.user_id
        now = datetime.now(timezone.utc)

        updated = self.repo.mark_reviewed(
            session,
            application_id,
            payload.decision,
            reviewer_id,
            payload.notes,
            now,
        )
        if not updated:
            session.rollback()
            raise ConflictError("Application has already been reviewed")

        if approved:
            if not self.account_repo.promote_to_creator(session, applicant_id):
                session.rollback()
                raise ConflictError("Applicant account has been banned")
            profile = self.account_repo.get_profile(session, applicant_id)
            if profile is not None and not profile.artist_name:
                profile.artist_name = application.artist_name
                session.add(profile)

        session.commit()
        logger.info(
            "Application %s %s by admin %s", application_id, payload.decision, reviewer_id
        )

        session.expire_all()
        application = self.repo.get_by_id(session, application_id)
        account, profile = self.account_repo.get_with_profile(session, applicant_id)

        self.notifier.notify(
            CREATOR_APPROVED if approved else CREATOR_REJECTED,
            account.email,
            {
                "username": profile.username,
                "artist_name": application.artist_name,
                "reason": payload.notes,
            },
        )

        return ApplicationReviewResult(
            application=self._to_read(application),
            applicant_role=account.role,
        )
