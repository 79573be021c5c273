"""Team management routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from halosuite.api.deps import CurrentUser, DbSession, pagination
from halosuite.core.exceptions import ForbiddenError, NotFoundError
from halosuite.models import Team
from halosuite.schemas.common import APIResponse, PaginationMeta
from halosuite.schemas.team import (
    AddMemberRequest,
    TeamCreate,
    TeamDetailResponse,
    TeamMemberResponse,
    TeamResponse,
    TeamUpdate,
)
from halosuite.schemas.user import UserBasicResponse
from halosuite.services.team_service import TeamService

router = APIRouter(prefix="/teams", tags=["Teams"])


def team_response(team: Team, member_count: int) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        name=team.name,
        description=team.description,
        avatar=team.avatar,
        owner=UserBasicResponse.model_validate(team.owner),
        memberCount=member_count,
        created_at=team.created_at,
    )


def team_detail(team: Team) -> TeamDetailResponse:
    members = [
        TeamMemberResponse(
            id=member.user.id,
            name=member.user.name,
            email=member.user.email,
            avatar=member.user.avatar,
            roleId=member.role_id,
            joinedAt=member.joined_at,
        )
        for member in team.members
    ]
    return TeamDetailResponse(
        **team_response(team, len(members)).model_dump(), members=members
    )


def require_owner(service: TeamService, team_id: str, user_id: str) -> None:
    if not service.is_owner(team_id, user_id):
        raise ForbiddenError("Only the team owner can do this")


@router.get("", response_model=APIResponse[list[TeamResponse]])
async def list_teams(
    db: DbSession,
    current_user: CurrentUser,
    paging: Annotated[tuple[int, int], Depends(pagination)],
    search: str | None = None,
) -> APIResponse[list[TeamResponse]]:
    """List teams the caller owns or belongs to."""
    page, limit = paging
    service = TeamService(db)
    teams, total = service.list(current_user.id, page=page, limit=limit, search=search)
    return APIResponse(
        data=[team_response(team, service.get_member_count(team.id)) for team in teams],
        meta=PaginationMeta.build(total, page, limit),
    )


@router.get("/{team_id}", response_model=APIResponse[TeamDetailResponse])
async def get_team(
    team_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[TeamDetailResponse]:
    """Get a team with its members.

    Raises:
        NotFoundError: If the team does not exist or the caller is neither owner nor member
    """
    service = TeamService(db)
    if not service.has_access(team_id, current_user.id):
        raise NotFoundError("Team not found")
    return APIResponse(data=team_detail(service.get(team_id)))


@router.post(
    "",
    response_model=APIResponse[TeamDetailResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_team(
    team_data: TeamCreate, db: DbSession, current_user: CurrentUser
) -> APIResponse[TeamDetailResponse]:
    team = TeamService(db).create(team_data, current_user.id)
    return APIResponse(message="Team created successfully", data=team_detail(team))


@router.patch("/{team_id}", response_model=APIResponse[TeamDetailResponse])
async def update_team(
    team_id: str, team_data: TeamUpdate, db: DbSession, current_user: CurrentUser
) -> APIResponse[TeamDetailResponse]:
    service = TeamService(db)
    require_owner(service, team_id, current_user.id)
    team = service.update(team_id, team_data)
    return APIResponse(message="Team updated successfully", data=team_detail(team))


@router.post("/{team_id}/members", response_model=APIResponse[TeamDetailResponse])
async def add_team_member(
    team_id: str, member_data: AddMemberRequest, db: DbSession, current_user: CurrentUser
) -> APIResponse[TeamDetailResponse]:
    """Add a member. Adding an existing member updates their role."""
    service = TeamService(db)
    require_owner(service, team_id, current_user.id)
    service.add_member(team_id, member_data.userId, member_data.roleId)
    return APIResponse(message="Member added successfully", data=team_detail(service.get(team_id)))


@router.delete("/{team_id}/members/{user_id}", response_model=APIResponse[None])
async def remove_team_member(
    team_id: str, user_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[None]:
    service = TeamService(db)
    require_owner(service, team_id, current_user.id)
    service.remove_member(team_id, user_id)
    return APIResponse(message="Member removed successfully")


@router.delete("/{team_id}", response_model=APIResponse[None])
async def delete_team(team_id: str, db: DbSession, current_user: CurrentUser) -> APIResponse[None]:
    service = TeamService(db)
    require_owner(service, team_id, current_user.id)
    service.delete(team_id)
    return APIResponse(message="Team deleted successfully")
