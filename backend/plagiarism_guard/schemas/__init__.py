"""Convenience exports for API schemas.

Re-exports the pydantic models used across the backend so consumers can import from one module.
"""

from .plagiarism import (
    PlagiarismReport,
    SimilarSubmission,
    SimilarSubmissionsResponse,
    SubmissionCreatedEvent,
)

__all__ = [
    "PlagiarismReport",
    "SimilarSubmission",
    "SimilarSubmissionsResponse",
    "SubmissionCreatedEvent",
]
