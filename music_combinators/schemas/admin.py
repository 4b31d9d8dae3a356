# music_combinators/schemas/admin.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class WaitlistEntry(SQLModel):
    id: uuid.UUID
    email: str
    role: str
    status: str
    created_at: datetime
    username: str
    display_name: str | None = None
    avatar_url: str | None = None


class ApprovedAccount(SQLModel):
    id: uuid.UUID
    email: str
    role: str
    status: str
    approved_at: datetime | None = None
    username: str


class BatchApproveRequest(SQLModel):
    """
    FIFO batch approval. `count` defaults to the onboarding_batch_size
    setting when omitted.
    """

    model_config = ConfigDict(extra="forbid")

    count: int | None = Field(default=None, ge=1, le=100)


class BatchApproveResult(SQLModel):
    approved: list[ApprovedAccount]
    count: int
    message: str


class BanRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    reason: str | None = Field(default=None, max_length=1000)


class SettingsUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    settings: dict[str, int | str]
