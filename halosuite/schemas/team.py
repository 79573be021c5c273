"""Team request and response bodies."""

from datetime import datetime

from pydantic import BaseModel, Field

from halosuite.schemas.user import UserBasicResponse


class TeamMemberResponse(UserBasicResponse):
    """A roster entry: the user plus their optional team role and join time."""

    roleId: str | None = None
    joinedAt: datetime | None = None


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    avatar: str | None = None


class TeamUpdate(BaseModel):
    """Partial update; ``None`` and empty strings leave fields unchanged."""

    name: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=500)
    avatar: str | None = None


class TeamResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    avatar: str | None = None
    owner: UserBasicResponse
    memberCount: int = Field(0, description="Roster size, owner included")
    created_at: datetime


class TeamDetailResponse(TeamResponse):
    members: list[TeamMemberResponse] = Field(default_factory=list)


class AddMemberRequest(BaseModel):
    """Add a user to the roster. Re-adding an existing member updates ``roleId``."""

    userId: str
    roleId: str | None = None
