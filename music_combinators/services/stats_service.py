# music_combinators/services/stats_service.py
from sqlmodel import Session

from music_combinators.models.account import (
    ROLE_ADMIN,
    ROLE_CREATOR,
    ROLE_LISTENER,
    STATUS_ACTIVE,
    STATUS_BANNED,
    STATUS_WAITLISTED,
)
from music_combinators.repositories.stats_repo import StatsRepository
from music_combinators.schemas.stats import (
    ContentStats,
    PendingStats,
    PlatformStats,
    UserStats,
)


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    def get_platform_stats(self, session: Session) -> PlatformStats:
        by_status = self.repo.count_users_by_status(session)
        by_role = self.repo.count_users_by_role(session)

        users = UserStats(
            total=sum(by_status.values()),
            waitlisted=by_status.get(STATUS_WAITLISTED, 0),
            active=by_status.get(STATUS_ACTIVE, 0),
            banned=by_status.get(STATUS_BANNED, 0),
            listeners=by_role.get(ROLE_LISTENER, 0),
            creators=by_role.get(ROLE_CREATOR, 0),
            admins=by_role.get(ROLE_ADMIN, 0),
        )

        return PlatformStats(
            users=users,
            content=ContentStats(
                tracks=self.repo.count_active_tracks(session),
                reels=self.repo.count_active_reels(session),
            ),
            pending=PendingStats(
                creator_applications=self.repo.count_pending_applications(session),
            ),
        )
