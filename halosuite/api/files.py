"""File management routes."""

from fastapi import APIRouter, Query, status

from halosuite.api.deps import CurrentUser, DbSession
from halosuite.core.exceptions import ForbiddenError
from halosuite.models import File
from halosuite.schemas.common import APIResponse, BatchDeleteRequest, DeletedCount, PaginationMeta
from halosuite.schemas.file import (
    DownloadUrl,
    FileCreate,
    FileMove,
    FileRename,
    FileResponse,
    StorageInfo,
)
from halosuite.schemas.user import UserBasicResponse
from halosuite.services.file_service import FileService

router = APIRouter(prefix="/files", tags=["Files"])


def file_response(file: File) -> FileResponse:
    return FileResponse(
        id=file.id,
        name=file.name,
        path=file.path,
        mimeType=file.mime_type,
        size=file.size,
        thumbnail=file.thumbnail,
        folderId=file.folder_id,
        teamId=file.team_id,
        isFavorite=file.is_favorite,
        owner=UserBasicResponse.model_validate(file.owner),
        created_at=file.created_at,
        updated_at=file.updated_at,
    )


def require_owner(service: FileService, file_id: str, user_id: str) -> None:
    if not service.is_owner(file_id, user_id):
        raise ForbiddenError("Only the file owner can do this")


@router.get("", response_model=APIResponse[list[FileResponse]])
async def list_files(
    db: DbSession,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    path: str | None = Query(None, description="Path prefix"),
    type: str | None = Query(None, description="MIME type prefix, e.g. image"),
    search: str | None = None,
    folderId: str | None = None,
) -> APIResponse[list[FileResponse]]:
    files, total = FileService(db).list(
        current_user.id,
        page=page,
        limit=limit,
        path=path,
        file_type=type,
        search=search,
        folder_id=folderId,
    )
    return APIResponse(
        data=[file_response(file) for file in files],
        meta=PaginationMeta.build(total, page, limit),
    )


@router.get("/storage", response_model=APIResponse[StorageInfo])
async def get_storage_info(db: DbSession, current_user: CurrentUser) -> APIResponse[StorageInfo]:
    """Storage used by the caller against their quota."""
    return APIResponse(data=FileService(db).get_storage_info(current_user.id))


@router.get("/{file_id}", response_model=APIResponse[FileResponse])
async def get_file(
    file_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[FileResponse]:
    return APIResponse(data=file_response(FileService(db).get(file_id, current_user.id)))


@router.get("/{file_id}/download-url", response_model=APIResponse[DownloadUrl])
async def get_download_url(
    file_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[DownloadUrl]:
    service = FileService(db)
    service.get(file_id, current_user.id)
    return APIResponse(data=DownloadUrl(url=service.get_download_url(file_id)))


@router.post(
    "/upload",
    response_model=APIResponse[FileResponse],
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    file_data: FileCreate, db: DbSession, current_user: CurrentUser
) -> APIResponse[FileResponse]:
    """Record an uploaded file's metadata and charge its size to the caller's quota."""
    file = FileService(db).create(file_data, current_user.id)
    return APIResponse(message="File uploaded successfully", data=file_response(file))


@router.patch("/{file_id}/rename", response_model=APIResponse[FileResponse])
async def rename_file(
    file_id: str, rename_data: FileRename, db: DbSession, current_user: CurrentUser
) -> APIResponse[FileResponse]:
    service = FileService(db)
    require_owner(service, file_id, current_user.id)
    file = service.rename(file_id, rename_data.name)
    return APIResponse(message="File renamed successfully", data=file_response(file))


@router.post("/{file_id}/move", response_model=APIResponse[FileResponse])
async def move_file(
    file_id: str, move_data: FileMove, db: DbSession, current_user: CurrentUser
) -> APIResponse[FileResponse]:
    service = FileService(db)
    require_owner(service, file_id, current_user.id)
    file = service.move(file_id, move_data.folderId, move_data.path)
    return APIResponse(message="File moved successfully", data=file_response(file))


@router.post(
    "/{file_id}/copy",
    response_model=APIResponse[FileResponse],
    status_code=status.HTTP_201_CREATED,
)
async def copy_file(
    file_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[FileResponse]:
    """Duplicate a file; the copy counts against the caller's quota."""
    service = FileService(db)
    require_owner(service, file_id, current_user.id)
    file = service.copy(file_id, current_user.id)
    return APIResponse(message="File copied successfully", data=file_response(file))


@router.patch("/{file_id}/favorite", response_model=APIResponse[FileResponse])
async def toggle_favorite(
    file_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[FileResponse]:
    service = FileService(db)
    require_owner(service, file_id, current_user.id)
    file = service.toggle_favorite(file_id)
    return APIResponse(data=file_response(file))


@router.post("/batch-delete", response_model=APIResponse[DeletedCount])
async def batch_delete_files(
    delete_data: BatchDeleteRequest, db: DbSession, current_user: CurrentUser
) -> APIResponse[DeletedCount]:
    """Delete the caller's files among the given ids and release their storage."""
    deleted = FileService(db).delete_many(delete_data.ids, current_user.id)
    return APIResponse(
        message=f"Successfully deleted {deleted} files",
        data=DeletedCount(deletedCount=deleted),
    )


@router.delete("/{file_id}", response_model=APIResponse[None])
async def delete_file(file_id: str, db: DbSession, current_user: CurrentUser) -> APIResponse[None]:
    service = FileService(db)
    require_owner(service, file_id, current_user.id)
    service.delete(file_id)
    return APIResponse(message="File deleted successfully")
