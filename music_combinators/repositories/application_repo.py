# music_combinators/repositories/application_repo.py
import uuid
from datetime import datetime

from sqlalchemy import func, update
from sqlmodel import Session, select

from music_combinators.models.application import (
    APPLICATION_APPROVED,
    APPLICATION_PENDING,
    OPEN_APPLICATION_STATUSES,
    CreatorApplication,
)


class ApplicationRepository:
    """
    Data access layer for creator_applications.

    NOTE:
      - `mark_reviewed` does not commit; the review and the role
        promotion are committed together by the service.
    """

    def get_by_id(
        self,
        session: Session,
        application_id: uuid.UUID,
    ) -> CreatorApplication | None:
        return session.get(CreatorApplication, application_id)

    def get_open_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> CreatorApplication | None:
        """The user's pending or approved application, if any."""
        stmt = (
            select(CreatorApplication)
            .where(CreatorApplication.user_id == user_id)
            .where(CreatorApplication.status.in_(OPEN_APPLICATION_STATUSES))
        )
        return session.exec(stmt).first()

    def latest_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> CreatorApplication | None:
        stmt = (
            select(CreatorApplication)
            .where(CreatorApplication.user_id == user_id)
            .order_by(CreatorApplication.submitted_at.desc())
        )
        return session.exec(stmt).first()

    def _filtered(self, stmt, status: str | None, user_id: uuid.UUID | None):
        if status is not None:
            stmt = stmt.where(CreatorApplication.status == status)
        if user_id is not None:
            stmt = stmt.where(CreatorApplication.user_id == user_id)
        return stmt

    def list(
        self,
        session: Session,
        status: str | None = None,
        user_id: uuid.UUID | None = None,
        oldest_first: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> list[CreatorApplication]:
        order = (
            CreatorApplication.submitted_at.asc()
            if oldest_first
            else CreatorApplication.submitted_at.desc()
        )
        stmt = self._filtered(select(CreatorApplication), status, user_id)
        stmt = stmt.order_by(order).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def count(
        self,
        session: Session,
        status: str | None = None,
        user_id: uuid.UUID | None = None,
    ) -> int:
        stmt = select(func.count()).select_from(CreatorApplication)
        stmt = self._filtered(stmt, status, user_id)
        return int(session.exec(stmt).one() or 0)

    def create(
        self,
        session: Session,
        application: CreatorApplication,
    ) -> CreatorApplication:
        session.add(application)
        session.commit()
        session.refresh(application)
        return application

    def mark_reviewed(
        self,
        session: Session,
        application_id: uuid.UUID,
        decision: str,
        reviewer_id: uuid.UUID,
        notes: str | None,
        now: datetime,
    ) -> int:
        """
        pending -> approved | rejected. Returns rows affected; 0 means the
        application was already reviewed by someone else.
        """
        values = {
            "status": decision,
            "reviewed_at": now,
            "reviewed_by": reviewer_id,
            "admin_notes": notes,
        }
        if decision != APPLICATION_APPROVED:
            values["rejection_reason"] = notes
        stmt = (
            update(CreatorApplication)
            .where(CreatorApplication.id == application_id)
            .where(CreatorApplication.status == APPLICATION_PENDING)
            .values(**values)
        )
        return session.exec(stmt).rowcount
