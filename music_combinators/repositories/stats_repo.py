# music_combinators/repositories/stats_repo.py
from sqlalchemy import func
from sqlmodel import Session, select

from music_combinators.models.account import Account
from music_combinators.models.application import APPLICATION_PENDING, CreatorApplication
from music_combinators.models.content import Reel, Track


class StatsRepository:
    """
    Read-only aggregated queries for the admin dashboard.
    """

    def count_users_by_status(self, session: Session) -> dict[str, int]:
        stmt = select(Account.status, func.count()).group_by(Account.status)
        return {status: int(n) for status, n in session.exec(stmt).all()}

    def count_users_by_role(self, session: Session) -> dict[str, int]:
        stmt = select(Account.role, func.count()).group_by(Account.role)
        return {role: int(n) for role, n in session.exec(stmt).all()}

    def count_active_tracks(self, session: Session) -> int:
        stmt = (
            select(func.count())
            .select_from(Track)
            .where(Track.is_active == True)  # noqa: E712
        )
        return int(session.exec(stmt).one() or 0)

    def count_active_reels(self, session: Session) -> int:
        stmt = (
            select(func.count())
            .select_from(Reel)
            .where(Reel.is_active == True)  # noqa: E712
        )
        return int(session.exec(stmt).one() or 0)

    def count_pending_applications(self, session: Session) -> int:
        stmt = (
            select(func.count())
            .select_from(CreatorApplication)
            .where(CreatorApplication.status == APPLICATION_PENDING)
        )
        return int(session.exec(stmt).one() or 0)
