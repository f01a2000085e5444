"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from quillnotes.backend.core.database import get_db_session
from quillnotes.backend.core.exceptions import AuthenticationError
from quillnotes.backend.core.logging import get_logger
from quillnotes.backend.core.security import get_subject

logger = get_logger(__name__)

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_request_id(request: Request, x_request_id: str | None = Header(None)) -> str:
    """Return the request ID assigned by the middleware, else the header or a new one."""
    request_id = getattr(request.state, "request_id", None)
    return request_id or x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


async def get_current_user_id(authorization: str | None = Header(None)) -> str:
    """
    Resolve the authenticated owner id from the Authorization header.

    Raises:
        AuthenticationError: If the header is missing, malformed or the
            bearer token is invalid
    """
    if not authorization:
        raise AuthenticationError("Authentication required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Bearer token required")

    return get_subject(token.strip())


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
