"""Service layer exports.

Expose the detection pipeline components for easy importing.
"""

from .consumer import PlagiarismConsumer
from .embedding_client import EmbeddingClient
from .plagiarism import PlagiarismService, build_plagiarism_service
from .search import SimilaritySearchEngine
from .similarity_store import SimilarityStore
from .submission_store import SubmissionStore
from .subscriber import SubmissionEventSubscriber, parse_submission_event
from .threshold import ThresholdResolver

__all__ = [
    "EmbeddingClient",
    "PlagiarismConsumer",
    "PlagiarismService",
    "SimilarityStore",
    "SimilaritySearchEngine",
    "SubmissionEventSubscriber",
    "SubmissionStore",
    "ThresholdResolver",
    "build_plagiarism_service",
    "parse_submission_event",
]
