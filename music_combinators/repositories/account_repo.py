# music_combinators/repositories/account_repo.py
import uuid
from datetime import datetime

from sqlalchemy import func, or_, update
from sqlmodel import Session, select

from music_combinators.models.account import (
    Account,
    Profile,
    ROLE_CREATOR,
    STATUS_ACTIVE,
    STATUS_BANNED,
    STATUS_WAITLISTED,
)


def like_pattern(query: str) -> str:
    """Escape LIKE wildcards in user input and wrap it for substring match."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class AccountRepository:
    """
    Data access layer for Account (users) & Profile (profiles).

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - Status/role transitions as conditional UPDATEs; callers inspect
        the affected ids/rowcount instead of trusting a prior read.
    """

    # ----- Reads -----

    def get_by_id(self, session: Session, account_id: uuid.UUID) -> Account | None:
        """Return an Account by primary key, or None if not found."""
        return session.get(Account, account_id)

    def get_profile(self, session: Session, account_id: uuid.UUID) -> Profile | None:
        return session.get(Profile, account_id)

    def get_with_profile(
        self,
        session: Session,
        account_id: uuid.UUID,
    ) -> tuple[Account, Profile] | None:
        stmt = (
            select(Account, Profile)
            .join(Profile, Profile.id == Account.id)
            .where(Account.id == account_id)
        )
        return session.exec(stmt).first()

    def get_by_username(
        self,
        session: Session,
        username: str,
    ) -> tuple[Account, Profile] | None:
        stmt = (
            select(Account, Profile)
            .join(Profile, Profile.id == Account.id)
            .where(Profile.username == username)
        )
        return session.exec(stmt).first()

    def username_taken(
        self,
        session: Session,
        username: str,
        exclude_id: uuid.UUID | None = None,
    ) -> bool:
        stmt = select(Profile.id).where(Profile.username == username)
        if exclude_id is not None:
            stmt = stmt.where(Profile.id != exclude_id)
        return session.exec(stmt).first() is not None

    def _search_filter(self, query: str):
        pattern = like_pattern(query)
        return or_(
            Profile.username.ilike(pattern, escape="\\"),
            Profile.artist_name.ilike(pattern, escape="\\"),
        )

    def search_active(
        self,
        session: Session,
        query: str,
        skip: int = 0,
        limit: int = 20,
    ) -> list[tuple[Account, Profile]]:
        """
        Case-insensitive substring match on username OR artist_name,
        restricted to active accounts, newest first.
        """
        stmt = (
            select(Account, Profile)
            .join(Profile, Profile.id == Account.id)
            .where(Account.status == STATUS_ACTIVE)
            .where(self._search_filter(query))
            .order_by(Account.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def count_search_active(self, session: Session, query: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Account)
            .join(Profile, Profile.id == Account.id)
            .where(Account.status == STATUS_ACTIVE)
            .where(self._search_filter(query))
        )
        return int(session.exec(stmt).one() or 0)

    def list_waitlisted(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[tuple[Account, Profile]]:
        """Waitlisted accounts in signup order (FIFO)."""
        stmt = (
            select(Account, Profile)
            .join(Profile, Profile.id == Account.id)
            .where(Account.status == STATUS_WAITLISTED)
            .order_by(Account.created_at.asc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def count_waitlisted(self, session: Session) -> int:
        stmt = (
            select(func.count())
            .select_from(Account)
            .where(Account.status == STATUS_WAITLISTED)
        )
        return int(session.exec(stmt).one() or 0)

    def list_by_ids(
        self,
        session: Session,
        account_ids: list[uuid.UUID],
    ) -> list[tuple[Account, Profile]]:
        if not account_ids:
            return []
        stmt = (
            select(Account, Profile)
            .join(Profile, Profile.id == Account.id)
            .where(Account.id.in_(account_ids))
            .order_by(Account.created_at.asc())
        )
        return session.exec(stmt).all()

    # ----- Writes -----

    def create(self, session: Session, account: Account, profile: Profile) -> Account:
        """Insert Account + Profile together and return the persisted account."""
        session.add(account)
        session.flush()
        session.add(profile)
        session.commit()
        session.refresh(account)
        return account

    def update_profile(self, session: Session, profile: Profile) -> Profile:
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    # ----- Conditional transitions (no commit) -----

    def oldest_waitlisted_ids(self, session: Session, count: int) -> list[uuid.UUID]:
        """
        Ids of the `count` earliest-created waitlisted accounts.

        Rows are locked (skipping ones another admin already holds) where
        the backend supports it.
        """
        stmt = (
            select(Account.id)
            .where(Account.status == STATUS_WAITLISTED)
            .order_by(Account.created_at.asc())
            .limit(count)
            .with_for_update(skip_locked=True)
        )
        return list(session.exec(stmt).all())

    def activate_waitlisted(
        self,
        session: Session,
        account_ids: list[uuid.UUID],
        now: datetime,
    ) -> list[uuid.UUID]:
        """
        waitlisted -> active for every id still waitlisted.

        Returns:
            Ids that actually transitioned.
        """
        if not account_ids:
            return []
        stmt = (
            update(Account)
            .where(Account.id.in_(account_ids))
            .where(Account.status == STATUS_WAITLISTED)
            .values(status=STATUS_ACTIVE, approved_at=now)
            .returning(Account.id)
        )
        return list(session.exec(stmt).scalars().all())

    def ban(
        self,
        session: Session,
        account_id: uuid.UUID,
        reason: str | None,
        now: datetime,
    ) -> int:
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(status=STATUS_BANNED, ban_reason=reason, banned_at=now)
        )
        return session.exec(stmt).rowcount

    def unban(self, session: Session, account_id: uuid.UUID) -> int:
        """banned -> active; clears ban fields. Returns rows affected."""
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .where(Account.status == STATUS_BANNED)
            .values(status=STATUS_ACTIVE, ban_reason=None, banned_at=None)
        )
        return session.exec(stmt).rowcount

    def promote_to_creator(self, session: Session, account_id: uuid.UUID) -> int:
        """listener -> creator, refused for banned accounts."""
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .where(Account.status != STATUS_BANNED)
            .values(role=ROLE_CREATOR)
        )
        return session.exec(stmt).rowcount
