"""Convenience exports for ORM models.

Surface the SQLModel classes so calling code can import them from a single module.
"""

from .submission import Submission
from .submission_embedding import SubmissionEmbedding
from .tenant import Tenant

__all__ = [
    "Submission",
    "SubmissionEmbedding",
    "Tenant",
]
