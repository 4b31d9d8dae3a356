# tests/conftest.py
from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENVIRONMENT", "test")

from music_combinators.core.config import get_settings
from music_combinators.core.errors import AuthenticationError
from music_combinators.core.identity import (
    IdentityProvider,
    IdentityResult,
    get_identity_provider,
)
from music_combinators.core.storage_utils import MediaGateway, get_media_gateway
from music_combinators.database import get_session as app_get_session
from music_combinators.main import app as fastapi_app
from music_combinators.models.account import (
    Account,
    Profile,
    ROLE_ADMIN,
    ROLE_CREATOR,
    ROLE_LISTENER,
    STATUS_ACTIVE,
)
from music_combinators.services.notification_service import Notifier, get_notifier

TEST_DB_URL = "sqlite://"

_ACCOUNT_COUNTER = count(1)


# ---------------------------------------------------------------------------
# Fakes for external collaborators
# ---------------------------------------------------------------------------


class FakeMediaGateway(MediaGateway):
    """Records every call; can be told to fail puts or deletes."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail_put = False
        self.fail_delete = False
        self._seq = count(1)

    def put(self, category, owner_id, upload) -> str:
        if self.fail_put:
            raise RuntimeError("storage unavailable")
        url = f"https://storage.test/{category}/{owner_id}/{next(self._seq)}"
        self.calls.append(("put", url))
        return url

    def delete(self, url: str) -> None:
        self.calls.append(("delete", url))
        if self.fail_delete:
            raise RuntimeError("storage unavailable")

    @property
    def deleted(self) -> list[str]:
        return [url for op, url in self.calls if op == "delete"]


class FakeNotifier(Notifier):
    """Captures notifications instead of sending email."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[dict] = []

    def notify(self, kind, recipient, context=None) -> bool:
        self.sent.append({"kind": kind, "to_email": recipient, "context": context or {}})
        return True

    def kinds(self) -> list[str]:
        return [message["kind"] for message in self.sent]


class FakeIdentityProvider(IdentityProvider):
    """In-memory identity store keyed by email."""

    def __init__(self) -> None:
        self.users: dict[str, tuple[uuid.UUID, str]] = {}

    def sign_up(self, email: str, password: str, username: str) -> IdentityResult:
        user_id = uuid.uuid4()
        self.users[email] = (user_id, password)
        return IdentityResult(user_id=user_id, email=email, access_token="access-" + email)

    def sign_in(self, email: str, password: str) -> IdentityResult:
        entry = self.users.get(email)
        if entry is None or entry[1] != password:
            raise AuthenticationError("Invalid email or password")
        return IdentityResult(user_id=entry[0], email=email, access_token="access-" + email)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    try:
        yield engine
    finally:
        SQLModel.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    session = Session(engine)
    try:
        yield session
    finally:
        session.close()
        # Each test starts from empty tables
        with engine.begin() as conn:
            for table in reversed(SQLModel.metadata.sorted_tables):
                conn.execute(table.delete())


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def gateway() -> FakeMediaGateway:
    return FakeMediaGateway()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    engine: Engine,
    db_session: Session,
    gateway: FakeMediaGateway,
    notifier: FakeNotifier,
    identity: FakeIdentityProvider,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        with Session(engine) as session:
            yield session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_media_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_identity_provider] = lambda: identity
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# Accounts and tokens
# ---------------------------------------------------------------------------


def make_token(account_id: uuid.UUID, email: str) -> str:
    settings = get_settings()
    payload = {
        "sub": str(account_id),
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(payload, settings.SUPABASE_JWT_SECRET, algorithm=settings.SUPABASE_JWT_ALG)


def auth_headers(account: Account) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(account.id, account.email)}"}


@pytest.fixture()
def make_account(db_session: Session) -> Callable[..., Account]:
    """Insert an Account + Profile directly, bypassing the API."""

    def _make(
        role: str = ROLE_LISTENER,
        status: str = STATUS_ACTIVE,
        username: str | None = None,
        created_at: datetime | None = None,
        artist_name: str | None = None,
    ) -> Account:
        n = next(_ACCOUNT_COUNTER)
        account = Account(
            id=uuid.uuid4(),
            email=f"user{n}@example.com",
            role=role,
            status=status,
            created_at=created_at or datetime.now(timezone.utc),
        )
        db_session.add(account)
        db_session.flush()
        db_session.add(
            Profile(
                id=account.id,
                username=username or f"user{n}",
                artist_name=artist_name,
            )
        )
        db_session.commit()
        db_session.refresh(account)
        return account

    return _make


@pytest.fixture()
def headers_for() -> Callable[[Account], dict[str, str]]:
    """Bearer headers for an account created with `make_account`."""
    return auth_headers


@pytest.fixture()
def admin(make_account: Callable[..., Account]) -> Account:
    return make_account(role=ROLE_ADMIN, username="admin_user")


@pytest.fixture()
def creator(make_account: Callable[..., Account]) -> Account:
    return make_account(role=ROLE_CREATOR, username="beatmaker", artist_name="Beat Maker")


@pytest.fixture()
def listener(make_account: Callable[..., Account]) -> Account:
    return make_account(username="listener_one")


@pytest.fixture()
def upload_files() -> Callable[..., dict]:
    """Multipart `files=` payload builder for TestClient."""

    def _files(field: str = "audio", content_type: str = "audio/mpeg", size: int = 64) -> dict:
        return {field: (f"{field}.bin", b"\x00" * size, content_type)}

    return _files


@pytest.fixture()
def token_for() -> Callable[[uuid.UUID, str], str]:
    """Mint a token for an identity that may not have an account yet."""
    return make_token
