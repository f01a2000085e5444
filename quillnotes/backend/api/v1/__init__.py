"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from quillnotes.backend.api.v1.endpoints import ai, notes, public
from quillnotes.backend.core.config import get_app_config

router = APIRouter()

# Notes endpoints
router.include_router(notes.router, prefix="/notes", tags=["notes"])

# Anonymous access to shared notes
router.include_router(public.router, prefix="/public", tags=["public"])

# AI text transforms
if get_app_config().features.ai_enabled:
    router.include_router(ai.router, prefix="/ai", tags=["ai"])
