"""Detection orchestration for newly created submissions.

Classes:
    PlagiarismService: Drives fetch -> embed -> search -> score -> persist -> flag for one submission,
        and serves the on-demand similar-submissions and report read paths.

Functions:
    build_plagiarism_service(session_factory, settings): Wire the service with its default collaborators.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from plagiarism_guard.core.config import Settings, get_settings
from plagiarism_guard.core.errors import (
    DimensionMismatchError,
    EmbeddingError,
    PersistenceError,
    PlagiarismGuardError,
    SubmissionNotFoundError,
)
from plagiarism_guard.schemas import PlagiarismReport, SimilarSubmission
from plagiarism_guard.services.embedding_client import EmbeddingClient
from plagiarism_guard.services.search import SimilaritySearchEngine
from plagiarism_guard.services.similarity import as_vector
from plagiarism_guard.services.similarity_store import SimilarityStore
from plagiarism_guard.services.submission_store import SubmissionStore
from plagiarism_guard.services.threshold import ThresholdResolver
from plagiarism_guard.utils.text import prepare_for_embedding

_LOGGER = logging.getLogger(__name__)


class PlagiarismService:
    def __init__(
        self,
        *,
        embedding_client: EmbeddingClient,
        submission_store: SubmissionStore,
        similarity_store: SimilarityStore,
        search_engine: Optional[SimilaritySearchEngine] = None,
        threshold_resolver: Optional[ThresholdResolver] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._embedding_client = embedding_client
        self._submissions = submission_store
        self._store = similarity_store
        self._search = search_engine or SimilaritySearchEngine(similarity_store, settings=self._settings)
        self._thresholds = threshold_resolver or ThresholdResolver(submission_store, settings=self._settings)

    async def process_submission(self, submission_id: str, tenant_id: str, course_id: str) -> None:
        """Score one submission against its course and flag it when it crosses the tenant threshold.

        Safe to call repeatedly for the same submission: the embedding row is overwritten and the
        flag only ever moves from False to True. Failures are logged and end processing of this
        submission; only a :class:`DimensionMismatchError` is raised to the caller.
        """

        try:
            submission = await self._submissions.get_by_id(submission_id, tenant_id)
        except SQLAlchemyError:
            _LOGGER.error(
                "submission lookup failed submission_id=%s tenant_id=%s",
                submission_id,
                tenant_id,
                exc_info=True,
            )
            return

        if submission is None:
            _LOGGER.warning(
                "submission not found submission_id=%s tenant_id=%s", submission_id, tenant_id
            )
            return

        text = prepare_for_embedding(submission.text_content)
        if not text:
            _LOGGER.warning("submission has no text submission_id=%s", submission_id)
            return

        try:
            vector = as_vector(await self._embedding_client.embed(text), self._store.dim)
        except EmbeddingError as exc:
            _LOGGER.error("embedding failed submission_id=%s: %s", submission_id, exc)
            return

        try:
            similar = await self._search.search(
                vector,
                tenant_id,
                course_id,
                submission_id,
                self._settings.plagiarism_default_top_k,
            )
            threshold = await self._thresholds.resolve_threshold(tenant_id)
            highest = max((result.similarity for result in similar), default=0.0)
            is_flagged = highest >= threshold

            await self._store.upsert(submission_id, tenant_id, course_id, vector, highest)
            if is_flagged and not submission.is_flagged:
                await self._submissions.set_flagged(submission_id, tenant_id)
        except DimensionMismatchError:
            raise
        except (PlagiarismGuardError, SQLAlchemyError) as exc:
            _LOGGER.error("detection failed submission_id=%s: %s", submission_id, exc)
            return
        except Exception:
            _LOGGER.exception("unexpected detection failure submission_id=%s", submission_id)
            return

        _LOGGER.info(
            "submission checked submission_id=%s highest=%.3f threshold=%.2f flagged=%s",
            submission_id,
            highest,
            threshold,
            is_flagged,
        )

    async def get_similar_submissions(
        self,
        submission_id: str,
        tenant_id: str,
        top_k: Optional[int] = None,
    ) -> list[SimilarSubmission]:
        if top_k is None:
            top_k = self._settings.plagiarism_default_top_k
        return await self._search.find_similar_to(submission_id, tenant_id, top_k)

    async def get_plagiarism_report(
        self,
        submission_id: str,
        tenant_id: str,
        top_k: Optional[int] = None,
    ) -> PlagiarismReport:
        """Return the stored detection outcome for a submission together with its neighbours.

        Raises :class:`SubmissionNotFoundError` when the submission does not belong to the tenant or
        has not been checked yet, and :class:`PersistenceError` when the store cannot be read.
        """

        try:
            submission = await self._submissions.get_by_id(submission_id, tenant_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"submission lookup failed for {submission_id}: {exc}") from exc
        if submission is None:
            raise SubmissionNotFoundError(f"submission {submission_id} not found")

        record = await self._store.get(submission_id, tenant_id)
        if record is None:
            raise SubmissionNotFoundError(f"submission {submission_id} has not been checked yet")

        similar = await self.get_similar_submissions(submission_id, tenant_id, top_k)
        return PlagiarismReport(
            submission_id=submission_id,
            is_flagged=submission.is_flagged,
            highest_similarity=record.highest_similarity,
            checked_at=record.checked_at,
            similar_submissions=similar,
        )


def build_plagiarism_service(
    session_factory: Optional[async_sessionmaker] = None,
    *,
    settings: Optional[Settings] = None,
    embedding_client: Optional[EmbeddingClient] = None,
) -> PlagiarismService:
    settings = settings or get_settings()
    submission_store = SubmissionStore(session_factory)
    return PlagiarismService(
        embedding_client=embedding_client or EmbeddingClient(settings=settings),
        submission_store=submission_store,
        similarity_store=SimilarityStore(session_factory, dim=settings.embedding_dim),
        settings=settings,
    )
