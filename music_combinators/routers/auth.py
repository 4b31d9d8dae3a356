# music_combinators/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from music_combinators.core.auth import account_service
from music_combinators.core.identity import IdentityProvider, get_identity_provider
from music_combinators.database import get_session
from music_combinators.repositories.account_repo import AccountRepository
from music_combinators.schemas.auth import AuthResult, SignInRequest, SignUpRequest
from music_combinators.schemas.common import ApiResponse, ok
from music_combinators.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

account_repo = AccountRepository()


def get_auth_service(
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AuthService:
    return AuthService(identity, account_service, account_repo)


@router.post(
    "/signup",
    response_model=ApiResponse[AuthResult],
    status_code=status.HTTP_201_CREATED,
)
def signup(
    payload: SignUpRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """
    Register with email + password.

    The new account starts waitlisted; most endpoints stay closed until
    an admin approves it.
    """
    return ok(service.sign_up(session, payload))


@router.post("/signin", response_model=ApiResponse[AuthResult])
def signin(
    payload: SignInRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """
    Exchange email + password for a Supabase session.

    Waitlisted and banned accounts can still sign in; their status is
    returned so the client can show the right screen.
    """
    return ok(service.sign_in(session, payload))
