"""
Notes API Endpoints.

REST API endpoints for an owner's notes. Every route requires a bearer
token; the token subject is the owner id.
"""

from fastapi import APIRouter, Query

from quillnotes.backend.core.dependencies import CurrentUserId, DbSession, RequestId
from quillnotes.backend.schemas.base import ApiResponse, ResponseMetadata
from quillnotes.backend.schemas.note import (
    NoteCreate,
    NoteOrderResponse,
    NoteOrderUpdate,
    NoteResponse,
    NoteSort,
    NoteUpdate,
    NoteVisibility,
)
from quillnotes.backend.services.note import NoteService

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[NoteResponse]],
    summary="List notes",
    description="List the caller's notes, most recently updated first, with optional search and filters.",
)
async def list_notes(
    db: DbSession,
    owner_id: CurrentUserId,
    request_id: RequestId,
    q: str | None = Query(
        default=None,
        max_length=200,
        description="Case-insensitive text matched against title and content",
    ),
    visibility: NoteVisibility = Query(
        default=NoteVisibility.ALL,
        description="Restrict to public or private notes",
    ),
    sort: NoteSort = Query(
        default=NoteSort.UPDATED,
        description="Sort by last update or creation time, newest first",
    ),
) -> ApiResponse[list[NoteResponse]]:
    """List the caller's notes."""
    service = NoteService(db)
    notes = await service.list_notes(owner_id, query=q, visibility=visibility, sort=sort)
    return ApiResponse(data=notes, metadata=ResponseMetadata(request_id=request_id))


@router.post(
    "",
    response_model=ApiResponse[NoteResponse],
    status_code=201,
    summary="Create a note",
    description="Create a note. With encrypt=true the content is stored encrypted.",
)
async def create_note(
    data: NoteCreate,
    db: DbSession,
    owner_id: CurrentUserId,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Create a new note."""
    service = NoteService(db)
    note = await service.create_note(owner_id, data)
    return ApiResponse(data=note, metadata=ResponseMetadata(request_id=request_id))


@router.put(
    "/order",
    response_model=ApiResponse[NoteOrderResponse],
    summary="Save note order",
    description="Persist the display order of the caller's notes. Unknown ids are ignored.",
)
async def save_note_order(
    data: NoteOrderUpdate,
    db: DbSession,
    owner_id: CurrentUserId,
    request_id: RequestId,
) -> ApiResponse[NoteOrderResponse]:
    """Persist a note order."""
    service = NoteService(db)
    updated = await service.reorder_notes(owner_id, data.note_ids)
    return ApiResponse(
        data=NoteOrderResponse(updated=updated),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
    description="Get one of the caller's notes by ID.",
)
async def get_note(
    note_id: str,
    db: DbSession,
    owner_id: CurrentUserId,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Get a note by ID."""
    service = NoteService(db)
    note = await service.get_note(note_id, owner_id)
    return ApiResponse(data=note, metadata=ResponseMetadata(request_id=request_id))


@router.put(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description=(
        "Replace title and content. is_public, encrypt and label are "
        "left unchanged when omitted."
    ),
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    db: DbSession,
    owner_id: CurrentUserId,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Update a note."""
    service = NoteService(db)
    note = await service.update_note(note_id, owner_id, data)
    return ApiResponse(data=note, metadata=ResponseMetadata(request_id=request_id))


@router.delete(
    "/{note_id}",
    status_code=204,
    summary="Delete a note",
    description="Permanently delete a note.",
)
async def delete_note(
    note_id: str,
    db: DbSession,
    owner_id: CurrentUserId,
) -> None:
    """Delete a note."""
    service = NoteService(db)
    await service.delete_note(note_id, owner_id)
