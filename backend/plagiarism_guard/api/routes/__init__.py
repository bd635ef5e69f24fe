"""Route exports for the API layer.

Re-exports the plagiarism router so callers can include all endpoints with a single import.
"""

from .plagiarism import router as plagiarism_router

__all__ = ["plagiarism_router"]
