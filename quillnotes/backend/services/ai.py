"""
AI Text Service.

Text transforms for note content backed by a hosted chat-completion
endpoint (OpenAI-style `{model, messages}` request, `{choices}` response)
and an OCR engine for drawings.

Calls are not retried. The completion endpoint sits behind a circuit
breaker so a failing upstream fails fast; every failure surfaces as
AIServiceError and the caller keeps its prior content.

Usage:
    from quillnotes.backend.services.ai import get_ai_text_service

    service = get_ai_text_service()
    summary = await service.summarize(note.content)
"""

import asyncio
from typing import Any

import aiobreaker
import httpx

from quillnotes.backend.core.concurrency import get_semaphore
from quillnotes.backend.core.exceptions import AIServiceError, ValidationError
from quillnotes.backend.core.logging import get_logger, log_with_source
from quillnotes.backend.core.resilience import create_circuit_breaker
from quillnotes.backend.services.ocr import (
    OcrEngine,
    TesseractOcrEngine,
    clean_ocr_text,
    decode_image_input,
    is_image_input,
)

logger = get_logger(__name__)

SUMMARIZE_PROMPT = "Summarize the following text:\n{text}"
GRAMMAR_PROMPT = (
    "Fix the grammar of the following text. Do not suggest changes or explain them, "
    "only return the corrected text. Do not converse. Be concise:\n{text}"
)
DRAWING_PROMPT = (
    "The following text was recognized from a handwritten drawing and may contain "
    "recognition errors. Return only the corrected text, without commentary:\n\n{text}"
)

NO_RESPONSE = "No response"
NO_READABLE_TEXT = "Could not extract any readable text."


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def extract_completion(data: Any) -> str:
    """Return the trimmed first choice's message content, or "No response"."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return NO_RESPONSE
    if not isinstance(content, str) or not content.strip():
        return NO_RESPONSE
    return content.strip()


class CompletionClient:
    """Client for the hosted chat-completion endpoint."""

    def __init__(
        self,
        url: str,
        model: str,
        api_token: str,
        timeout_seconds: float = 30,
        breaker: aiobreaker.CircuitBreaker | None = None,
        http_client: httpx.AsyncClient | None = None,
        semaphore: asyncio.Semaphore | None = None,
    ) -> None:
        self.url = url
        self.model = model
        self._api_token = api_token
        self._timeout_seconds = timeout_seconds
        self._breaker = breaker or create_circuit_breaker("completion")
        self._client = http_client
        self._owns_client = http_client is None
        self._semaphore = semaphore

    @property
    def breaker(self) -> aiobreaker.CircuitBreaker:
        return self._breaker

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def complete(self, prompt: str) -> str:
        """
        Send a single user message and return the reply text.

        Raises:
            AIServiceError: On transport failure, non-2xx response or open breaker
        """
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }
        semaphore = self._semaphore or get_semaphore("llm")
        try:
            async with semaphore:
                data = await self._breaker.call_async(self._post, payload)
        except aiobreaker.CircuitBreakerError as e:
            # The call that trips the breaker still reports the upstream failure
            if isinstance(e.__cause__, AIServiceError):
                raise e.__cause__
            log_with_source(logger, "ai", "warning", "Completion rejected by circuit breaker")
            raise AIServiceError("AI service temporarily unavailable", body=str(e))

        return extract_completion(data)

    async def _post(self, payload: dict[str, Any]) -> Any:
        headers = {"Authorization": f"Bearer {self._api_token}"}
        try:
            response = await self._get_client().post(
                self.url,
                json=payload,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except httpx.HTTPError as e:
            log_with_source(
                logger, "ai", "error", "Completion request failed",
                error_type=type(e).__name__, error=str(e),
            )
            raise AIServiceError(f"AI request failed: {type(e).__name__}", body=str(e))

        body = _response_body(response)
        if not response.is_success:
            log_with_source(
                logger, "ai", "error", "Completion endpoint returned an error",
                status_code=response.status_code,
            )
            raise AIServiceError(
                f"AI request failed with status {response.status_code}",
                status_code=response.status_code,
                body=body,
            )
        return body


class AITextService:
    """
    Stateless text transforms for note content.

    Each operation returns the new text; nothing is written back to the
    note, so a failure leaves the caller's content untouched.
    """

    def __init__(
        self,
        completion: CompletionClient,
        ocr: OcrEngine | None = None,
        ocr_language: str = "eng",
    ) -> None:
        self.completion = completion
        self.ocr = ocr
        self.ocr_language = ocr_language

    async def summarize(self, content: str) -> str:
        """
        Raises:
            ValidationError: If the content is blank
        """
        if not content.strip():
            raise ValidationError("This note has no content to summarize")
        return await self.completion.complete(SUMMARIZE_PROMPT.format(text=content))

    async def fix_grammar(self, content: str) -> str:
        """
        Raises:
            ValidationError: If the content is blank
        """
        if not content.strip():
            raise ValidationError("Please add some content to fix grammar")
        return await self.completion.complete(GRAMMAR_PROMPT.format(text=content))

    async def transcribe_drawing(self, drawing: bytes | str) -> str:
        """
        Turn a drawing into corrected text.

        Image input (bytes or an image data URI) is run through OCR and
        cleaned first; plain text goes straight to correction. Empty text
        yields a fixed message without calling the completion endpoint.

        Raises:
            ValidationError: If image input is given but OCR is disabled, or
                the data URI is malformed
            AIServiceError: If OCR or the completion endpoint fails
        """
        if is_image_input(drawing):
            if self.ocr is None:
                raise ValidationError("Drawing recognition is disabled")
            raw = await self.ocr.recognize(decode_image_input(drawing), self.ocr_language)
            text = clean_ocr_text(raw)
            log_with_source(
                logger, "ai", "info", "Drawing recognized",
                raw_characters=len(raw), cleaned_characters=len(text),
            )
        else:
            text = drawing

        if not text.strip():
            return NO_READABLE_TEXT
        return await self.completion.complete(DRAWING_PROMPT.format(text=text))

    async def aclose(self) -> None:
        await self.completion.aclose()


_ai_service: AITextService | None = None


def get_ai_text_service() -> AITextService:
    """Get the process-wide AI text service configured from ai.yaml and .env."""
    global _ai_service
    if _ai_service is None:
        from quillnotes.backend.core.config import get_app_config, get_settings

        app_config = get_app_config()
        ai_config = app_config.ai
        breaker = create_circuit_breaker(
            "completion",
            fail_max=ai_config.circuit_breaker.fail_max,
            timeout_duration=ai_config.circuit_breaker.timeout_duration,
        )
        completion = CompletionClient(
            url=ai_config.completion.url,
            model=ai_config.completion.model,
            api_token=get_settings().ai_api_token,
            timeout_seconds=ai_config.completion.timeout_seconds,
            breaker=breaker,
        )
        ocr = TesseractOcrEngine() if app_config.features.ocr_enabled else None
        _ai_service = AITextService(completion, ocr=ocr, ocr_language=ai_config.ocr.language)
    return _ai_service


async def close_ai_text_service() -> None:
    """Close the AI text service's HTTP client. Called on app shutdown."""
    global _ai_service
    if _ai_service is not None:
        await _ai_service.aclose()
        _ai_service = None
