"""
Public Notes API Endpoints.

Anonymous read access to notes their owner has made public.
"""

from fastapi import APIRouter

from quillnotes.backend.core.dependencies import DbSession, RequestId
from quillnotes.backend.core.exceptions import NotFoundError
from quillnotes.backend.schemas.base import ApiResponse, ResponseMetadata
from quillnotes.backend.schemas.note import PublicNoteResponse
from quillnotes.backend.services.note import NoteService

router = APIRouter()


@router.get(
    "/notes/{public_id}",
    response_model=ApiResponse[PublicNoteResponse],
    summary="Read a public note",
    description="Get a note by its public id. Notes that are not public are reported as not found.",
)
async def get_public_note(
    public_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[PublicNoteResponse]:
    """Get a public note."""
    service = NoteService(db)
    note = await service.get_public_note(public_id)
    if note is None:
        raise NotFoundError("Note not found")
    return ApiResponse(
        data=PublicNoteResponse.model_validate(note.model_dump()),
        metadata=ResponseMetadata(request_id=request_id),
    )
