"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
"""

from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a resource is absent or not owned by the caller."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class AuthenticationError(ApplicationError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class ExternalServiceError(ApplicationError):
    """Raised when an external service call fails."""

    def __init__(
        self,
        message: str = "External service error",
        code: str = "SYS_EXTERNAL_SERVICE_ERROR",
    ) -> None:
        super().__init__(message, code=code)


class AIServiceError(ExternalServiceError):
    """
    Raised when the completion endpoint or the OCR engine fails.

    Carries the upstream HTTP status (None for transport, OCR and
    circuit-breaker failures) and the upstream response body.
    """

    def __init__(
        self,
        message: str = "AI service error",
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message, code="AI_SERVICE_ERROR")


class StorageError(ApplicationError):
    """Raised when the note store is unreachable or rejects a request."""

    def __init__(self, message: str = "Storage error") -> None:
        super().__init__(message, code="SYS_STORAGE_ERROR")


class DecryptionError(ApplicationError):
    """
    Note content could not be decrypted.

    Internal only: carried inside a DecryptResult and converted to a
    pass-through of the stored value by the note service.
    """

    def __init__(self, message: str = "Decryption failed") -> None:
        super().__init__(message, code="SYS_DECRYPTION_FAILED")
