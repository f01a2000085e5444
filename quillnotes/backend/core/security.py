"""
Security Utilities.

Bearer token handling. Identity is issued by the authentication provider
as a JWT; the token subject is the note owner id.
"""

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from quillnotes.backend.core.config import get_app_config, get_settings
from quillnotes.backend.core.exceptions import AuthenticationError
from quillnotes.backend.core.logging import get_logger
from quillnotes.backend.core.utils import utc_now

logger = get_logger(__name__)

# Width of the notes.owner_id column
OWNER_ID_MAX_LENGTH = 64


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token.

    Used by local tooling and tests; production tokens come from the
    authentication provider and share the same secret and audience.

    Args:
        data: Payload data to encode (must include "sub")
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    to_encode = data.copy()

    if expires_delta:
        expire = utc_now() + expires_delta
    else:
        expire = utc_now() + timedelta(minutes=jwt_config.access_token_expire_minutes)

    to_encode.update({"exp": expire, "type": "access", "aud": jwt_config.audience})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=jwt_config.algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        AuthenticationError: If token is invalid or expired
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[jwt_config.algorithm],
            audience=jwt_config.audience,
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise AuthenticationError("Invalid or expired token")


def get_subject(token: str) -> str:
    """
    Return the owner id carried by an access token.

    Raises:
        AuthenticationError: If the token is invalid or its subject is missing or too long
    """
    payload = decode_token(token)
    if payload.get("type") != "access":
        raise AuthenticationError("Access token required")
    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Token has no subject")
    subject = str(subject)
    if len(subject) > OWNER_ID_MAX_LENGTH:
        raise AuthenticationError("Token subject too long")
    return subject
