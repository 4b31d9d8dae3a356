# music_combinators/services/admin_service.py
import logging
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from music_combinators.core.errors import NotFoundError, ValidationError
from music_combinators.models.account import Account, Profile
from music_combinators.models.setting import (
    DEFAULT_SETTINGS,
    MAX_ACTIVE_USERS,
    ONBOARDING_BATCH_SIZE,
)
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.repositories.setting_repo import SettingRepository
from music_combinators.schemas.account import AccountRead
from music_combinators.schemas.admin import (
    ApprovedAccount,
    BatchApproveResult,
    WaitlistEntry,
)
from music_combinators.schemas.common import Page, Pagination
from music_combinators.services.account_service import to_account_read
from music_combinators.services.notification_service import (
    WAITLIST_APPROVED,
    Notifier,
)

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 100

# setting key -> (min, max) accepted integer value
SETTING_BOUNDS: dict[str, tuple[int, int | None]] = {
    ONBOARDING_BATCH_SIZE: (1, MAX_BATCH_SIZE),
    MAX_ACTIVE_USERS: (1, None),
}


def _approved(account: Account, profile: Profile) -> ApprovedAccount:
    return ApprovedAccount(
        id=account.id,
        email=account.email,
        role=account.role,
        status=account.status,
        approved_at=account.approved_at,
        username=profile.username,
    )


class AdminService:
    """
    Account moderation: waitlist approval, ban/unban, platform settings.

    Every status change is a conditional UPDATE; an id that is not in
    the required state is reported as NotFound, never re-applied.
    """

    def __init__(
        self,
        repo: AccountRepository,
        setting_repo: SettingRepository,
        notifier: Notifier,
    ):
        self.repo = repo
        self.setting_repo = setting_repo
        self.notifier = notifier

    # ----- Waitlist -----

    def list_waitlist(
        self,
        session: Session,
        page: int,
        limit: int,
    ) -> Page[WaitlistEntry]:
        rows = self.repo.list_waitlisted(session, skip=(page - 1) * limit, limit=limit)
        total = self.repo.count_waitlisted(session)
        items = [
            WaitlistEntry(
                id=account.id,
                email=account.email,
                role=account.role,
                status=account.status,
                created_at=account.created_at,
                username=profile.username,
                display_name=profile.display_name,
                avatar_url=profile.avatar_url,
            )
            for account, profile in rows
        ]
        return Page[WaitlistEntry](
            items=items,
            pagination=Pagination.build(page, limit, total),
        )

    def _notify_approved(self, rows: list[tuple[Account, Profile]]) -> None:
        for account, profile in rows:
            self.notifier.notify(
                WAITLIST_APPROVED,
                account.email,
                {"username": profile.username},
            )

    def approve_user(self, session: Session, account_id: uuid.UUID) -> ApprovedAccount:
        """
        waitlisted -> active for one account.

        Raises:
            NotFoundError: if the account is absent or not waitlisted.
        """
        now = datetime.now(timezone.utc)
        activated = self.repo.activate_waitlisted(session, [account_id], now)
        if not activated:
            session.rollback()
            raise NotFoundError("User not in waitlist or already approved")
        session.commit()
        logger.info("Approved waitlisted user %s", account_id)

        session.expire_all()
        rows = self.repo.list_by_ids(session, activated)
        self._notify_approved(rows)
        return _approved(*rows[0])

    def batch_approve(self, session: Session, count: int | None = None) -> BatchApproveResult:
        """
        Activate the `count` oldest waitlisted accounts (FIFO).

        `count` defaults to the onboarding_batch_size setting. Fewer
        waitlisted accounts than requested is not an error.
        """
        if count is None:
            count = int(self.get_settings(session)[ONBOARDING_BATCH_SIZE])
        if count < 1:
            raise ValidationError("Count must be at least 1")
        if count > MAX_BATCH_SIZE:
            raise ValidationError(
                f"Cannot approve more than {MAX_BATCH_SIZE} users at once"
            )

        candidates = self.repo.oldest_waitlisted_ids(session, count)
        if not candidates:
            session.rollback()
            return BatchApproveResult(approved=[], count=0, message="No users in waitlist")

        now = datetime.now(timezone.utc)
        activated = self.repo.activate_waitlisted(session, candidates, now)
        session.commit()
        logger.info("Batch approved %d of %d requested user(s)", len(activated), count)

        session.expire_all()
        rows = self.repo.list_by_ids(session, activated)
        self._notify_approved(rows)
        return BatchApproveResult(
            approved=[_approved(account, profile) for account, profile in rows],
            count=len(rows),
            message=f"Successfully approved {len(rows)} user(s)",
        )

    # ----- Ban / unban -----

    def ban(
        self,
        session: Session,
        admin_id: uuid.UUID,
        target_id: uuid.UUID,
        reason: str | None = None,
    ) -> AccountRead:
        if admin_id == target_id:
            raise ValidationError("Cannot ban yourself")

        now = datetime.now(timezone.utc)
        if not self.repo.ban(session, target_id, reason, now):
            session.rollback()
            raise NotFoundError("User not found")
        session.commit()
        logger.info("User %s banned by admin %s", target_id, admin_id)
        return self._account_read(session, target_id)

    def unban(self, session: Session, target_id: uuid.UUID) -> AccountRead:
        if not self.repo.unban(session, target_id):
            session.rollback()
            raise NotFoundError("User not found or not banned")
        session.commit()
        logger.info("User %s unbanned", target_id)
        return self._account_read(session, target_id)

    def _account_read(self, session: Session, account_id: uuid.UUID) -> AccountRead:
        session.expire_all()
        account, profile = self.repo.get_with_profile(session, account_id)
        return to_account_read(account, profile)

    # ----- Settings -----

    def get_settings(self, session: Session) -> dict[str, str]:
        """Stored settings layered over the defaults."""
        values = dict(DEFAULT_SETTINGS)
        values.update({row.key: row.value for row in self.setting_repo.list_all(session)})
        return values

    def update_settings(
        self,
        session: Session,
        changes: dict[str, int | str],
    ) -> dict[str, str]:
        """
        Raises:
            ValidationError: on an unknown key or an out-of-range value.
        """
        cleaned: dict[str, str] = {}
        for key, raw in changes.items():
            if key not in SETTING_BOUNDS:
                raise ValidationError(f"Unknown setting: {key}")
            try:
                value = int(str(raw).strip())
            except ValueError:
                raise ValidationError(f"Setting {key} must be an integer")
            low, high = SETTING_BOUNDS[key]
            if value < low or (high is not None and value > high):
                bound = f"between {low} and {high}" if high else f"at least {low}"
                raise ValidationError(f"Setting {key} must be {bound}")
            cleaned[key] = str(value)

        if cleaned:
            self.setting_repo.upsert_many(session, cleaned)
            logger.info("Settings updated: %s", ", ".join(sorted(cleaned)))
        return self.get_settings(session)
