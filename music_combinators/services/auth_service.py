# music_combinators/services/auth_service.py
import logging

from sqlmodel import Session

from music_combinators.core.errors import ConflictError
from music_combinators.core.identity import IdentityProvider, IdentityResult
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.schemas.auth import (
    AuthResult,
    AuthSession,
    SignInRequest,
    SignUpRequest,
)
from music_combinators.services.account_service import AccountService

logger = logging.getLogger(__name__)


class AuthService:
    """
    Sign-up / sign-in through the identity provider.

    The provider owns credentials; this service only mirrors the
    resulting identity into a local waitlisted account.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        account_service: AccountService,
        account_repo: AccountRepository,
    ):
        self.identity = identity
        self.account_service = account_service
        self.account_repo = account_repo

    @staticmethod
    def _session(result: IdentityResult) -> AuthSession | None:
        if result.access_token is None:
            # e.g. email confirmation pending
            return None
        return AuthSession(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            expires_in=result.expires_in,
        )

    def sign_up(self, session: Session, payload: SignUpRequest) -> AuthResult:
        """
        Raises:
            ConflictError: if the username is already taken.
            ValidationError: if the provider rejects the sign-up.
        """
        # Reject before any remote identity is created
        if self.account_repo.username_taken(session, payload.username):
            raise ConflictError("Username already taken")

        result = self.identity.sign_up(payload.email, payload.password, payload.username)
        account = self.account_service.provision(
            session,
            result.user_id,
            result.email or payload.email,
            payload.username,
        )
        logger.info("New signup %s joined the waitlist", account.id)

        return AuthResult(
            account=self.account_service.get_account(session, account.id),
            session=self._session(result),
        )

    def sign_in(self, session: Session, payload: SignInRequest) -> AuthResult:
        result = self.identity.sign_in(payload.email, payload.password)
        account = self.account_service.get_or_provision(
            session, result.user_id, result.email or payload.email
        )
        return AuthResult(
            account=self.account_service.get_account(session, account.id),
            session=self._session(result),
        )
