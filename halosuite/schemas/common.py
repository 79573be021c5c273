"""Response envelope and pagination shared by every endpoint."""

from math import ceil
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Pagination metadata; list endpoints may attach extra counters."""

    model_config = ConfigDict(extra="allow")

    total: int
    page: int
    limit: int
    totalPages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int, **extra: Any) -> "PaginationMeta":
        """Compute ``totalPages = ceil(total / limit)`` (0 when limit is 0)."""
        total_pages = ceil(total / limit) if limit > 0 else 0
        return cls(total=total, page=page, limit=limit, totalPages=total_pages, **extra)


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


class APIResponse(BaseModel, Generic[T]):
    """``{success, message?, data?, meta?}`` envelope."""

    success: bool = True
    message: str | None = None
    data: T | None = None
    meta: PaginationMeta | None = None

    @model_serializer(mode="wrap")
    def drop_empty(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        payload = handler(self)
        return {key: value for key, value in payload.items() if value is not None}


class BatchDeleteRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)


class DeletedCount(BaseModel):
    deletedCount: int
