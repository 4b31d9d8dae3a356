# music_combinators/models/setting.py
from sqlmodel import SQLModel, Field

ONBOARDING_BATCH_SIZE = "onboarding_batch_size"
MAX_ACTIVE_USERS = "max_active_users"

DEFAULT_SETTINGS: dict[str, str] = {
    ONBOARDING_BATCH_SIZE: "10",
    MAX_ACTIVE_USERS: "100",
}


class AppSetting(SQLModel, table=True):
    """Admin-editable key/value configuration."""

    __tablename__ = "settings"

    key: str = Field(primary_key=True)
    value: str
