"""Document and sharing schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from halosuite.models.enums import SharePermission
from halosuite.schemas.user import UserBasicResponse


class DocumentCreate(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = ""
    type: str = "doc"
    folder: str | None = None
    teamId: str | None = None
    tags: list[str] = Field(default_factory=list)


class DocumentUpdate(BaseModel):
    """Partial update; ``None`` and empty strings leave fields unchanged."""

    title: str | None = None
    content: str | None = None
    folder: str | None = None
    type: str | None = None


class DocumentRename(BaseModel):
    title: str = Field(..., min_length=1)


class DocumentMove(BaseModel):
    folder: str | None = None


class DocumentTagsUpdate(BaseModel):
    tags: list[str]


class GranteeRef(BaseModel):
    """Exactly one of ``userId`` or ``teamId``."""

    userId: str | None = None
    teamId: str | None = None

    @model_validator(mode="after")
    def check_one_grantee(self) -> "GranteeRef":
        if bool(self.userId) == bool(self.teamId):
            raise ValueError("Exactly one of userId or teamId is required")
        return self


class DocumentShareRequest(GranteeRef):
    permission: SharePermission = SharePermission.READ
    expiresAt: datetime | None = None


class DocumentShareResponse(BaseModel):
    id: str
    documentId: str
    userId: str | None = None
    teamId: str | None = None
    permission: str
    expiresAt: datetime | None = None
    created_at: datetime


class DocumentResponse(BaseModel):
    id: str
    title: str
    content: str
    type: str
    folder: str | None = None
    size: int = 0
    views: int = 0
    teamId: str | None = None
    tags: list[str] = Field(default_factory=list)
    author: UserBasicResponse
    created_at: datetime
    updated_at: datetime
