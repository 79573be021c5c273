"""File request and response bodies."""

from datetime import datetime

from pydantic import BaseModel, Field

from halosuite.schemas.user import UserBasicResponse


class FileCreate(BaseModel):
    """Metadata recorded for an upload. ``size`` is charged to the uploader's quota."""

    name: str = Field(..., min_length=1, max_length=255)
    path: str
    mimeType: str = Field(..., min_length=1)
    size: int = Field(..., ge=0, description="Bytes")
    folderId: str | None = Field(None, description="Must be a folder the caller owns")
    teamId: str | None = None
    thumbnail: str | None = None


class FileRename(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class FileMove(BaseModel):
    folderId: str | None = None
    path: str


class FileResponse(BaseModel):
    id: str
    name: str
    path: str
    mimeType: str
    size: int
    thumbnail: str | None = None
    folderId: str | None = None
    teamId: str | None = None
    isFavorite: bool = False
    owner: UserBasicResponse
    created_at: datetime
    updated_at: datetime


class StorageInfo(BaseModel):
    """Usage against the per-user allowance, in bytes."""

    used: int
    total: int
    available: int
    usedPercent: int


class DownloadUrl(BaseModel):
    url: str
