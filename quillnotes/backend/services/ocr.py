"""
OCR Engine.

Text recognition for drawings. Tesseract is CPU-bound and blocking, so it
runs on the shared I/O thread pool behind the "ocr" semaphore.
"""

import asyncio
import base64
import binascii
import io
import re
from concurrent.futures import Executor
from typing import Protocol

import pytesseract
from PIL import Image, UnidentifiedImageError

from quillnotes.backend.core.concurrency import get_io_pool, get_semaphore
from quillnotes.backend.core.exceptions import AIServiceError, ValidationError
from quillnotes.backend.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

DATA_URI_PREFIX = "data:image/"

_NON_TEXT = re.compile(r"[^a-zA-Z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


class OcrEngine(Protocol):
    """Recognizes text in an encoded image."""

    async def recognize(self, image: bytes, language: str = "eng") -> str:
        ...


def is_image_input(value: bytes | str) -> bool:
    """Raw bytes and image data URIs are images; any other str is text."""
    if isinstance(value, (bytes, bytearray)):
        return True
    return value.startswith(DATA_URI_PREFIX)


def decode_image_input(value: bytes | str) -> bytes:
    """
    Return the encoded image bytes of raw bytes or a base64 data URI.

    Raises:
        ValidationError: If the data URI is malformed
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)

    header, sep, payload = value.partition(",")
    if not sep or not header.endswith(";base64"):
        raise ValidationError("Image must be a base64 data URI")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image data URI is not valid base64")


def clean_ocr_text(text: str) -> str:
    """Drop characters other than ASCII letters, digits and whitespace; collapse whitespace."""
    text = _NON_TEXT.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


class TesseractOcrEngine:
    """OCR through the Tesseract binary (pytesseract) with Pillow decoding."""

    def __init__(
        self,
        executor: Executor | None = None,
        semaphore: asyncio.Semaphore | None = None,
    ) -> None:
        self._executor = executor
        self._semaphore = semaphore

    async def recognize(self, image: bytes, language: str = "eng") -> str:
        """
        Recognize raw text in an encoded image.

        Raises:
            AIServiceError: If the image cannot be decoded or Tesseract fails
        """
        loop = asyncio.get_running_loop()
        semaphore = self._semaphore or get_semaphore("ocr")
        executor = self._executor or get_io_pool()

        async with semaphore:
            text = await loop.run_in_executor(executor, _recognize_sync, image, language)

        log_with_source(
            logger, "ai", "debug", "OCR finished",
            language=language, characters=len(text),
        )
        return text


def _recognize_sync(image: bytes, language: str) -> str:
    try:
        with Image.open(io.BytesIO(image)) as img:
            return pytesseract.image_to_string(img, lang=language)
    except UnidentifiedImageError as e:
        raise AIServiceError("OCR failed: image could not be decoded", body=str(e))
    except (pytesseract.TesseractError, OSError) as e:
        logger.error("OCR engine error", extra={"error_type": type(e).__name__, "error": str(e)})
        raise AIServiceError(f"OCR failed: {type(e).__name__}", body=str(e))
