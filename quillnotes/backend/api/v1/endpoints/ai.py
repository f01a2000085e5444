"""
AI Text API Endpoints.

Summarize, grammar-fix and drawing transcription. Results are returned
to the caller only; no note is modified.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from quillnotes.backend.core.dependencies import CurrentUserId, RequestId
from quillnotes.backend.schemas.ai import (
    DrawingTranscriptionRequest,
    TextTransformRequest,
    TextTransformResponse,
)
from quillnotes.backend.schemas.base import ApiResponse, ResponseMetadata
from quillnotes.backend.services.ai import AITextService, get_ai_text_service

router = APIRouter()

AIService = Annotated[AITextService, Depends(get_ai_text_service)]


@router.post(
    "/summarize",
    response_model=ApiResponse[TextTransformResponse],
    summary="Summarize text",
)
async def summarize(
    data: TextTransformRequest,
    service: AIService,
    owner_id: CurrentUserId,
    request_id: RequestId,
) -> ApiResponse[TextTransformResponse]:
    """Summarize note content."""
    result = await service.summarize(data.content)
    return ApiResponse(
        data=TextTransformResponse(result=result),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/grammar",
    response_model=ApiResponse[TextTransformResponse],
    summary="Fix grammar",
)
async def fix_grammar(
    data: TextTransformRequest,
    service: AIService,
    owner_id: CurrentUserId,
    request_id: RequestId,
) -> ApiResponse[TextTransformResponse]:
    """Correct the grammar of note content."""
    result = await service.fix_grammar(data.content)
    return ApiResponse(
        data=TextTransformResponse(result=result),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/transcribe",
    response_model=ApiResponse[TextTransformResponse],
    summary="Transcribe a drawing",
    description="Recognize text in an image data URI and correct it. Plain text input skips recognition.",
)
async def transcribe_drawing(
    data: DrawingTranscriptionRequest,
    service: AIService,
    owner_id: CurrentUserId,
    request_id: RequestId,
) -> ApiResponse[TextTransformResponse]:
    """Transcribe a drawing to text."""
    result = await service.transcribe_drawing(data.input)
    return ApiResponse(
        data=TextTransformResponse(result=result),
        metadata=ResponseMetadata(request_id=request_id),
    )
