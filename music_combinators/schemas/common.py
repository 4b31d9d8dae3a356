# music_combinators/schemas/common.py
import math
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Pagination(BaseModel):
    """Page metadata returned by every listing endpoint."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if limit else 0,
        )


class Page(BaseModel, Generic[T]):
    items: list[T]
    pagination: Pagination


class ErrorBody(BaseModel):
    message: str
    detail: str | None = None


class ApiResponse(BaseModel, Generic[T]):
    """
    Uniform response envelope:

        {"success": true, "data": ...}
        {"success": false, "error": {"message": ...}}
    """

    success: bool = True
    data: T | None = None
    error: ErrorBody | None = None


def ok(data=None) -> dict:
    """Wrap a payload in the success envelope."""
    return {"success": True, "data": data}
