# music_combinators/core/pagination.py
from dataclasses import dataclass

from fastapi import Query

from music_combinators.core.config import get_settings


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int


def get_page_params(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
) -> PageParams:
    """
    Shared `?page=&limit=` dependency.

    A missing limit falls back to DEFAULT_PAGE_LIMIT; anything above
    MAX_PAGE_LIMIT is clamped.
    """
    settings = get_settings()
    limit = min(limit or settings.DEFAULT_PAGE_LIMIT, settings.MAX_PAGE_LIMIT)
    return PageParams(page=page, limit=limit)
