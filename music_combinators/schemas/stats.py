# music_combinators/schemas/stats.py
from pydantic import BaseModel


class UserStats(BaseModel):
    total: int
    waitlisted: int
    active: int
    banned: int
    listeners: int
    creators: int
    admins: int


class ContentStats(BaseModel):
    tracks: int
    reels: int


class PendingStats(BaseModel):
    creator_applications: int


class PlatformStats(BaseModel):
    """Aggregated counters for the admin dashboard."""

    users: UserStats
    content: ContentStats
    pending: PendingStats
