# music_combinators/core/auth.py
import uuid
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from music_combinators.core.config import get_settings
from music_combinators.core.errors import AuthenticationError, AuthorizationError
from music_combinators.database import get_session
from music_combinators.models.account import (
    Account,
    ROLE_ADMIN,
    ROLE_CREATOR,
    STATUS_ACTIVE,
    STATUS_BANNED,
    STATUS_WAITLISTED,
)
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.repositories.follow_repo import FollowRepository
from music_combinators.services.account_service import AccountService

# Missing Authorization header yields None instead of 401 so guest routes work.
bearer_scheme = HTTPBearer(auto_error=False)

account_service = AccountService(AccountRepository(), FollowRepository())


@dataclass(frozen=True)
class Principal:
    """Identity verified from the bearer token."""

    id: uuid.UUID
    email: str


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify a Supabase access token and return its claims.

    The signature and `exp` are checked; `aud` is not, as Supabase
    issues several audiences.

    Raises:
        AuthenticationError: on a bad signature or an expired token.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise AuthenticationError("Invalid or expired token")


def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal | None:
    """
    Resolve the verified principal, or None for guests.

    Raises:
        AuthenticationError: if a token is present but malformed.
    """
    if credentials is None:
        return None  # guest mode

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    email = payload.get("email")

    if not sub or not email:
        raise AuthenticationError("Token missing sub/email")

    # Supabase provides sub as a string; enforce UUID
    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise AuthenticationError("Invalid sub in token")

    return Principal(id=sub_uuid, email=email)


def get_current_account(
    principal: Principal | None = Depends(get_principal),
    session: Session = Depends(get_session),
) -> Account | None:
    """
    Load the caller's account, provisioning it on first sight.

    New accounts start waitlisted as listeners.
    """
    if principal is None:
        return None
    return account_service.get_or_provision(session, principal.id, principal.email)


# ---------------------------------------------------------------------------
# Authorization guard
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str | None = None
    status_code: int = status.HTTP_200_OK

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(
        cls,
        reason: str,
        status_code: int = status.HTTP_403_FORBIDDEN,
    ) -> "AccessDecision":
        return cls(allowed=False, reason=reason, status_code=status_code)


def authorize(
    account: Account | None,
    roles: tuple[str, ...] | None = None,
    require_active: bool = True,
) -> AccessDecision:
    """
    Evaluate role/status requirements for one request.

    Denial reasons name the account's actual state so clients can show
    the right next step.
    """
    if account is None:
        return AccessDecision.deny(
            "Authentication required", status.HTTP_401_UNAUTHORIZED
        )

    if require_active and account.status != STATUS_ACTIVE:
        if account.status == STATUS_WAITLISTED:
            return AccessDecision.deny("Account pending approval")
        if account.status == STATUS_BANNED:
            return AccessDecision.deny("Account has been banned")
        return AccessDecision.deny("Account not active")

    if roles is not None and account.role not in roles:
        return AccessDecision.deny("Insufficient permissions")

    return AccessDecision.allow()


def require_access(
    roles: tuple[str, ...] | None = None,
    require_active: bool = True,
) -> Callable[..., Account]:
    """
    Build a dependency that enforces `authorize(...)` and returns the
    authenticated Account.
    """

    def dependency(account: Account | None = Depends(get_current_account)) -> Account:
        decision = authorize(account, roles=roles, require_active=require_active)
        if not decision.allowed:
            if decision.status_code == status.HTTP_401_UNAUTHORIZED:
                raise AuthenticationError(decision.reason or "Authentication required")
            raise AuthorizationError(decision.reason or "Access denied")
        return account  # type: ignore[return-value]

    return dependency


# Any authenticated account, whatever its status (e.g. GET /users/me)
require_auth = require_access(require_active=False)

# Active accounts of any role
require_active = require_access()

require_admin = require_access(roles=(ROLE_ADMIN,))

require_creator_or_admin = require_access(roles=(ROLE_CREATOR, ROLE_ADMIN))
