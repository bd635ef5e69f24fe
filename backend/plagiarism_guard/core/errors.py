"""Exception taxonomy for the detection pipeline.

Classes:
    PlagiarismGuardError: Base class for every error raised by this package.
    EmbeddingError: The embedding provider failed, timed out, or returned an unusable payload.
    MalformedMessageError: A bus payload could not be decoded or validated.
    PersistenceError: The store rejected an upsert, flag write, or similarity query.
    DimensionMismatchError: A vector does not have the configured dimensionality.
    BusConnectionError: The message bus could not be reached at startup.
    SubmissionNotFoundError: A submission, or its detection record, does not exist for the tenant.
"""

from __future__ import annotations


class PlagiarismGuardError(Exception):
    pass


class EmbeddingError(PlagiarismGuardError):
    pass


class MalformedMessageError(PlagiarismGuardError):
    pass


class PersistenceError(PlagiarismGuardError):
    pass


class DimensionMismatchError(PlagiarismGuardError):
    """Raised when a vector's length differs from the deployment's embedding dimension.

    This is a configuration fault (wrong model or wrong column size), so it is never
    handled per message.
    """

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"expected {expected} dimensions, got {actual}")
        self.expected = expected
        self.actual = actual


class BusConnectionError(PlagiarismGuardError):
    pass


class SubmissionNotFoundError(PlagiarismGuardError):
    pass
