# music_combinators/database.py
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from music_combinators.core.config import get_settings

settings = get_settings()


def _with_ssl(db_url: str) -> str:
    """Force sslmode=require unless the URL already chooses a mode."""
    if "sslmode=" in db_url:
        return db_url
    separator = "&" if "?" in db_url else "?"
    return f"{db_url}{separator}sslmode=require"


def build_engine(db_url: str) -> Engine:
    """
    Postgres (Supabase session pooler): one pooled connection per process,
    pre-pinged, since the pooler caps concurrent clients.

    SQLite (local runs, tests): a single shared in-process connection.
    """
    if db_url.startswith("sqlite"):
        return create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        _with_ssl(db_url),
        echo=False,
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables() -> None:
    """Create missing tables; run once from the app lifespan."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency yielding one Session per request.

    Repositories take the session as an argument, so tests swap the
    engine through `app.dependency_overrides[get_session]`.
    """
    with Session(engine) as session:
        yield session
