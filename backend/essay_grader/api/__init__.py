"""
API routes package initialization.
"""

from fastapi import APIRouter

from essay_grader.api.settings import router as settings_router
from essay_grader.api.uploads import router as uploads_router
from essay_grader.api.history import router as history_router

# Create main API router with v1 versioning
api_router = APIRouter(prefix="/api/v1")

# Include all sub-routers
api_router.include_router(settings_router)
api_router.include_router(uploads_router)
api_router.include_router(history_router)

__all__ = ["api_router"]
