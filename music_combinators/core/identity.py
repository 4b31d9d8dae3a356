# music_combinators/core/identity.py
import logging
import uuid
from dataclasses import dataclass

from supabase import AuthError

from music_combinators.core.errors import AuthenticationError, ValidationError
from music_combinators.core.supabase_client import supabase_public

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityResult:
    """User and (optional) session issued by the identity provider."""

    user_id: uuid.UUID
    email: str
    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None


class IdentityProvider:
    """Interface for the external sign-up / sign-in service."""

    def sign_up(self, email: str, password: str, username: str) -> IdentityResult:
        raise NotImplementedError

    def sign_in(self, email: str, password: str) -> IdentityResult:
        raise NotImplementedError


class SupabaseIdentityProvider(IdentityProvider):
    """
    Supabase Auth over the anon client.

    Passwords never touch our database; we only mirror the returned
    user id into the `users` table.
    """

    @staticmethod
    def _to_result(response) -> IdentityResult:
        user = response.user
        if user is None:
            raise AuthenticationError("Identity provider returned no user")
        session = response.session
        return IdentityResult(
            user_id=uuid.UUID(str(user.id)),
            email=user.email or "",
            access_token=session.access_token if session else None,
            refresh_token=session.refresh_token if session else None,
            expires_in=session.expires_in if session else None,
        )

    def sign_up(self, email: str, password: str, username: str) -> IdentityResult:
        try:
            response = supabase_public().auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"username": username}},
                }
            )
        except AuthError as exc:
            logger.warning("Sign-up rejected for %s: %s", email, exc)
            raise ValidationError(str(exc)) from exc
        return self._to_result(response)

    def sign_in(self, email: str, password: str) -> IdentityResult:
        try:
            response = supabase_public().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise AuthenticationError("Invalid email or password") from exc
        return self._to_result(response)


def get_identity_provider() -> IdentityProvider:
    """FastAPI dependency; override in tests."""
    return SupabaseIdentityProvider()
