"""Folder management routes."""

from fastapi import APIRouter, status

from halosuite.api.deps import CurrentUser, DbSession
from halosuite.core.exceptions import ForbiddenError
from halosuite.models import Folder
from halosuite.schemas.common import APIResponse
from halosuite.schemas.folder import (
    FolderCreate,
    FolderMove,
    FolderRename,
    FolderResponse,
    FolderTreeNode,
)
from halosuite.services.folder_service import FolderService

router = APIRouter(prefix="/folders", tags=["Folders"])


def folder_response(folder: Folder) -> FolderResponse:
    return FolderResponse(
        id=folder.id,
        name=folder.name,
        path=folder.path,
        parentId=folder.parent_id,
        teamId=folder.team_id,
        ownerId=folder.owner_id,
        created_at=folder.created_at,
        updated_at=folder.updated_at,
    )


def require_owner(service: FolderService, folder_id: str, user_id: str) -> None:
    if not service.is_owner(folder_id, user_id):
        raise ForbiddenError("Only the folder owner can do this")


@router.get("", response_model=APIResponse[list[FolderResponse]])
async def list_folders(
    db: DbSession, current_user: CurrentUser, parentId: str | None = None
) -> APIResponse[list[FolderResponse]]:
    """List the caller's folders directly under ``parentId`` (roots by default)."""
    folders = FolderService(db).list(current_user.id, parent_id=parentId)
    return APIResponse(data=[folder_response(folder) for folder in folders])


@router.get("/tree", response_model=APIResponse[list[FolderTreeNode]])
async def get_folder_tree(
    db: DbSession, current_user: CurrentUser
) -> APIResponse[list[FolderTreeNode]]:
    return APIResponse(data=FolderService(db).get_tree(current_user.id))


@router.get("/{folder_id}", response_model=APIResponse[FolderResponse])
async def get_folder(
    folder_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[FolderResponse]:
    return APIResponse(data=folder_response(FolderService(db).get(folder_id, current_user.id)))


@router.post(
    "",
    response_model=APIResponse[FolderResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_folder(
    folder_data: FolderCreate, db: DbSession, current_user: CurrentUser
) -> APIResponse[FolderResponse]:
    folder = FolderService(db).create(
        folder_data.name,
        current_user.id,
        parent_id=folder_data.parentId,
        team_id=folder_data.teamId,
    )
    return APIResponse(message="Folder created successfully", data=folder_response(folder))


@router.patch("/{folder_id}", response_model=APIResponse[FolderResponse])
async def rename_folder(
    folder_id: str, rename_data: FolderRename, db: DbSession, current_user: CurrentUser
) -> APIResponse[FolderResponse]:
    """Rename a folder. Paths of everything beneath it are rewritten."""
    service = FolderService(db)
    require_owner(service, folder_id, current_user.id)
    folder = service.rename(folder_id, rename_data.name)
    return APIResponse(message="Folder renamed successfully", data=folder_response(folder))


@router.post("/{folder_id}/move", response_model=APIResponse[FolderResponse])
async def move_folder(
    folder_id: str, move_data: FolderMove, db: DbSession, current_user: CurrentUser
) -> APIResponse[FolderResponse]:
    service = FolderService(db)
    require_owner(service, folder_id, current_user.id)
    folder = service.move(folder_id, move_data.parentId)
    return APIResponse(message="Folder moved successfully", data=folder_response(folder))


@router.delete("/{folder_id}", response_model=APIResponse[None])
async def delete_folder(
    folder_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[None]:
    """Delete a folder, its subfolders and the files they contain."""
    service = FolderService(db)
    require_owner(service, folder_id, current_user.id)
    removed = service.delete(folder_id)
    return APIResponse(message=f"Folder deleted with {removed} files")
