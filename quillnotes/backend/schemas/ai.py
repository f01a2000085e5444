"""
AI Text Schemas.

Request/response schemas for the text transform endpoints.
"""

from pydantic import BaseModel, Field


class TextTransformRequest(BaseModel):
    """Text to summarize or correct."""

    content: str = Field(
        ...,
        max_length=20_000,
        description="Text to transform",
        examples=["i has went to the store yesterday"],
    )


class DrawingTranscriptionRequest(BaseModel):
    """Drawing to transcribe: an image data URI, or plain text to correct."""

    input: str = Field(
        ...,
        max_length=10_000_000,
        description="data:image/...;base64,... URI or plain text",
    )


class TextTransformResponse(BaseModel):
    """Result of a text transform."""

    result: str
