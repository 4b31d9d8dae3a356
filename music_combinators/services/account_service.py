# music_combinators/services/account_service.py
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from music_combinators.core.errors import ConflictError, NotFoundError, ValidationError
from music_combinators.models.account import Account, Profile, ROLE_CREATOR
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.repositories.follow_repo import FollowRepository
from music_combinators.schemas.account import (
    AccountRead,
    ProfileRead,
    ProfileUpdate,
    PublicAccountRead,
    PublicProfileRead,
)
from music_combinators.schemas.common import Page, Pagination

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


def default_username(account_id: uuid.UUID) -> str:
    """Placeholder handle for accounts created from a bare token."""
    return f"user_{account_id.hex[:8]}"


def to_account_read(account: Account, profile: Profile) -> AccountRead:
    return AccountRead(
        id=account.id,
        email=account.email,
        role=account.role,
        status=account.status,
        approved_at=account.approved_at,
        ban_reason=account.ban_reason,
        banned_at=account.banned_at,
        created_at=account.created_at,
        profile=ProfileRead.model_validate(profile, from_attributes=True),
    )


def to_public_read(account: Account, profile: Profile) -> PublicAccountRead:
    return PublicAccountRead(
        id=account.id,
        role=account.role,
        profile=ProfileRead.model_validate(profile, from_attributes=True),
    )


class AccountService:
    """
    Business logic for accounts and profiles.

    Responsibilities:
      - provision the local account on first authenticated request
      - self-service profile edits (username uniqueness, creator-only fields)
      - public lookups and search over active accounts
    """

    def __init__(self, repo: AccountRepository, follow_repo: FollowRepository):
        self.repo = repo
        self.follow_repo = follow_repo

    # ----- Provisioning -----

    def provision(
        self,
        session: Session,
        account_id: uuid.UUID,
        email: str,
        username: str | None = None,
    ) -> Account:
        """
        Create the Account + Profile pair for a new identity.

        New accounts always start as waitlisted listeners.

        Raises:
            ConflictError: if the requested username is taken.
        """
        handle = username or default_username(account_id)
        if username is not None and self.repo.username_taken(session, username):
            raise ConflictError("Username already taken")

        account = Account(id=account_id, email=email)
        profile = Profile(id=account_id, username=handle)
        try:
            account = self.repo.create(session, account, profile)
        except IntegrityError:
            session.rollback()
            # Another request provisioned the same identity first
            existing = self.repo.get_by_id(session, account_id)
            if existing is not None:
                return existing
            raise ConflictError("Username already taken")

        logger.info("Provisioned account %s (%s)", account.id, handle)
        return account

    def get_or_provision(
        self,
        session: Session,
        account_id: uuid.UUID,
        email: str,
    ) -> Account:
        account = self.repo.get_by_id(session, account_id)
        if account is not None:
            return account
        return self.provision(session, account_id, email)

    # ----- Reads -----

    def get_account(self, session: Session, account_id: uuid.UUID) -> AccountRead:
        """Full view of one account (owner or admin)."""
        row = self.repo.get_with_profile(session, account_id)
        if row is None:
            raise NotFoundError("User not found")
        account, profile = row
        return to_account_read(account, profile)

    def get_by_username(self, session: Session, username: str) -> PublicAccountRead:
        row = self.repo.get_by_username(session, username)
        if row is None:
            raise NotFoundError("User not found")
        return to_public_read(*row)

    def get_public_profile(
        self,
        session: Session,
        account_id: uuid.UUID,
        viewer_id: uuid.UUID | None = None,
    ) -> PublicProfileRead:
        """
        Public profile with follow counts.

        `is_following` is only computed when a viewer is known.
        """
        row = self.repo.get_with_profile(session, account_id)
        if row is None:
            raise NotFoundError("User not found")
        account, profile = row

        is_following = False
        if viewer_id is not None and viewer_id != account_id:
            is_following = self.follow_repo.exists(session, viewer_id, account_id)

        return PublicProfileRead(
            id=account.id,
            role=account.role,
            profile=ProfileRead.model_validate(profile, from_attributes=True),
            follower_count=self.follow_repo.count_followers(session, account_id),
            following_count=self.follow_repo.count_following(session, account_id),
            is_following=is_following,
        )

    def search(
        self,
        session: Session,
        query: str,
        page: int,
        limit: int,
    ) -> Page[PublicAccountRead]:
        """Substring search over username / artist name of active accounts."""
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            raise ValidationError(
                f"Search query must be at least {MIN_SEARCH_LENGTH} characters"
            )

        skip = (page - 1) * limit
        rows = self.repo.search_active(session, query, skip=skip, limit=limit)
        total = self.repo.count_search_active(session, query)
        return Page[PublicAccountRead](
            items=[to_public_read(account, profile) for account, profile in rows],
            pagination=Pagination.build(page, limit, total),
        )

    # ----- Self-service -----

    def update_profile(
        self,
        session: Session,
        account: Account,
        payload: ProfileUpdate,
    ) -> AccountRead:
        """
        Partial profile update.

        Rules:
          - username must stay unique
          - artist_name may only be set by creators
        """
        changes = payload.model_dump(exclude_unset=True)

        if "artist_name" in changes and account.role != ROLE_CREATOR:
            raise ValidationError("Only creators can set artist name")

        username = changes.get("username")
        if username is not None and self.repo.username_taken(
            session, username, exclude_id=account.id
        ):
            raise ConflictError("Username already taken")

        profile = self.repo.get_profile(session, account.id)
        if profile is None:
            raise NotFoundError("Profile not found")

        for field, value in changes.items():
            if field == "username" and value is None:
                continue
            setattr(profile, field, value)

        try:
            profile = self.repo.update_profile(session, profile)
        except IntegrityError:
            session.rollback()
            raise ConflictError("Username already taken")

        return to_account_read(account, profile)
