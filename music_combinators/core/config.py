# music_combinators/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Environment-driven settings (.env is read when present).

    Must be set:
      - SUPABASE_URL, SUPABASE_KEY (anon key)
      - DATABASE_URL (Postgres pooler URL, or sqlite:// for local runs)
      - SUPABASE_JWT_SECRET (verifies access tokens)

    Everything else has a default. SMTP is configured separately, see
    core/email_client.py.
    """

    PROJECT_NAME: str = "Music Combinators API"
    API_V1_STR: str = "/api/v1"

    # "development" adds exception detail to 500 responses
    ENVIRONMENT: str = "production"

    SUPABASE_URL: str
    SUPABASE_KEY: str
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    DATABASE_URL: str

    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Public bucket holding audio, video and cover art
    STORAGE_BUCKET: str = "music-combinators-uploads"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    DEFAULT_PAGE_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 100

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Parsed once per process."""
    return Settings()
