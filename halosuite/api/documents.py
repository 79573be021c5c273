"""Document management routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from halosuite.api.deps import CurrentUser, DbSession, pagination
from halosuite.core.exceptions import ForbiddenError, NotFoundError
from halosuite.models import Document, DocumentShare
from halosuite.schemas.common import APIResponse, BatchDeleteRequest, DeletedCount, PaginationMeta
from halosuite.schemas.document import (
    DocumentCreate,
    DocumentMove,
    DocumentRename,
    DocumentResponse,
    DocumentShareRequest,
    DocumentShareResponse,
    DocumentTagsUpdate,
    DocumentUpdate,
    GranteeRef,
)
from halosuite.schemas.user import UserBasicResponse
from halosuite.services.document_service import DocumentService

router = APIRouter(prefix="/documents", tags=["Documents"])


def document_response(document: Document) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        title=document.title,
        content=document.content,
        type=document.type,
        folder=document.folder,
        size=document.size,
        views=document.views,
        teamId=document.team_id,
        tags=[dt.tag.name for dt in document.tags],
        author=UserBasicResponse.model_validate(document.owner),
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


def share_response(share: DocumentShare) -> DocumentShareResponse:
    return DocumentShareResponse(
        id=share.id,
        documentId=share.document_id,
        userId=share.shared_with_id,
        teamId=share.team_id,
        permission=share.permission,
        expiresAt=share.expires_at,
        created_at=share.created_at,
    )


def require_owner(service: DocumentService, document_id: str, user_id: str) -> None:
    if not service.is_owner(document_id, user_id):
        raise ForbiddenError("Only the document owner can do this")


@router.get("", response_model=APIResponse[list[DocumentResponse]])
async def list_documents(
    db: DbSession,
    current_user: CurrentUser,
    paging: Annotated[tuple[int, int], Depends(pagination)],
    folder: str | None = None,
    tags: str | None = Query(None, description="Comma-separated tag names"),
    search: str | None = None,
) -> APIResponse[list[DocumentResponse]]:
    """List owned documents and documents shared with the caller."""
    page, limit = paging
    tag_list = [tag.strip() for tag in tags.split(",") if tag.strip()] if tags else None
    documents, total = DocumentService(db).list(
        current_user.id, page=page, limit=limit, search=search, folder=folder, tags=tag_list
    )
    return APIResponse(
        data=[document_response(document) for document in documents],
        meta=PaginationMeta.build(total, page, limit),
    )


@router.get("/{document_id}", response_model=APIResponse[DocumentResponse])
async def get_document(
    document_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[DocumentResponse]:
    """Get a document and count the view.

    Raises:
        NotFoundError: If the document does not exist or the caller has no access
    """
    service = DocumentService(db)
    if not service.has_access(document_id, current_user.id):
        raise NotFoundError("Document not found")

    service.increment_views(document_id)
    return APIResponse(data=document_response(service.get(document_id)))


@router.post(
    "",
    response_model=APIResponse[DocumentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_document(
    document_data: DocumentCreate, db: DbSession, current_user: CurrentUser
) -> APIResponse[DocumentResponse]:
    document = DocumentService(db).create(document_data, current_user.id)
    return APIResponse(message="Document created successfully", data=document_response(document))


@router.put("/{document_id}", response_model=APIResponse[DocumentResponse])
async def update_document(
    document_id: str,
    document_data: DocumentUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> APIResponse[DocumentResponse]:
    service = DocumentService(db)
    require_owner(service, document_id, current_user.id)
    document = service.update(document_id, document_data)
    return APIResponse(message="Document updated successfully", data=document_response(document))


@router.patch("/{document_id}/rename", response_model=APIResponse[DocumentResponse])
async def rename_document(
    document_id: str,
    rename_data: DocumentRename,
    db: DbSession,
    current_user: CurrentUser,
) -> APIResponse[DocumentResponse]:
    service = DocumentService(db)
    require_owner(service, document_id, current_user.id)
    document = service.rename(document_id, rename_data.title)
    return APIResponse(message="Document renamed successfully", data=document_response(document))


@router.post("/{document_id}/move", response_model=APIResponse[DocumentResponse])
async def move_document(
    document_id: str,
    move_data: DocumentMove,
    db: DbSession,
    current_user: CurrentUser,
) -> APIResponse[DocumentResponse]:
    service = DocumentService(db)
    require_owner(service, document_id, current_user.id)
    document = service.move(document_id, move_data.folder)
    return APIResponse(message="Document moved successfully", data=document_response(document))


@router.post("/{document_id}/tags", response_model=APIResponse[DocumentResponse])
async def update_document_tags(
    document_id: str,
    tags_data: DocumentTagsUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> APIResponse[DocumentResponse]:
    service = DocumentService(db)
    require_owner(service, document_id, current_user.id)
    document = service.update_tags(document_id, tags_data.tags)
    return APIResponse(message="Document tags updated", data=document_response(document))


@router.post("/{document_id}/share", response_model=APIResponse[DocumentShareResponse])
async def share_document(
    document_id: str,
    share_data: DocumentShareRequest,
    db: DbSession,
    current_user: CurrentUser,
) -> APIResponse[DocumentShareResponse]:
    """Grant a user or team access; sharing again updates the existing grant."""
    service = DocumentService(db)
    require_owner(service, document_id, current_user.id)
    share = service.share(
        document_id,
        current_user.id,
        user_id=share_data.userId,
        team_id=share_data.teamId,
        permission=share_data.permission,
        expires_at=share_data.expiresAt,
    )
    return APIResponse(message="Document shared successfully", data=share_response(share))


@router.post("/{document_id}/unshare", response_model=APIResponse[None])
async def unshare_document(
    document_id: str,
    unshare_data: GranteeRef,
    db: DbSession,
    current_user: CurrentUser,
) -> APIResponse[None]:
    """Remove a grant. Succeeds even if there was nothing to remove."""
    service = DocumentService(db)
    require_owner(service, document_id, current_user.id)
    service.unshare(document_id, user_id=unshare_data.userId, team_id=unshare_data.teamId)
    return APIResponse(message="Document unshared successfully")


@router.get("/{document_id}/shares", response_model=APIResponse[list[DocumentShareResponse]])
async def list_document_shares(
    document_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[list[DocumentShareResponse]]:
    service = DocumentService(db)
    require_owner(service, document_id, current_user.id)
    return APIResponse(data=[share_response(share) for share in service.list_shares(document_id)])


@router.post("/batch-delete", response_model=APIResponse[DeletedCount])
async def batch_delete_documents(
    delete_data: BatchDeleteRequest, db: DbSession, current_user: CurrentUser
) -> APIResponse[DeletedCount]:
    """Delete the caller's documents among the given ids."""
    deleted = DocumentService(db).batch_delete(delete_data.ids, current_user.id)
    return APIResponse(
        message=f"Successfully deleted {deleted} documents",
        data=DeletedCount(deletedCount=deleted),
    )


@router.delete("/{document_id}", response_model=APIResponse[None])
async def delete_document(
    document_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[None]:
    service = DocumentService(db)
    require_owner(service, document_id, current_user.id)
    service.delete(document_id)
    return APIResponse(message="Document deleted successfully")
