"""API router composition for the backend.

The module assembles individual route groups into a single `api_router` that can be mounted on the app.
"""

from fastapi import APIRouter

from plagiarism_guard.api.routes.plagiarism import router as plagiarism_router

api_router = APIRouter()
api_router.include_router(plagiarism_router)

__all__ = ["api_router"]
