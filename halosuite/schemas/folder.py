"""Folder schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _check_segment(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Folder name must not be blank")
    if "/" in value:
        raise ValueError("Folder name must not contain '/'")
    return value


class FolderCreate(BaseModel):
    name: str
    parentId: str | None = None
    teamId: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _check_segment(v)


class FolderRename(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _check_segment(v)


class FolderMove(BaseModel):
    parentId: str | None = None


class FolderResponse(BaseModel):
    id: str
    name: str
    path: str
    parentId: str | None = None
    teamId: str | None = None
    ownerId: str
    created_at: datetime
    updated_at: datetime


class FolderTreeNode(BaseModel):
    id: str
    name: str
    path: str
    parentId: str | None = None
    children: list["FolderTreeNode"] = Field(default_factory=list)
