"""Similarity search over stored submission embeddings.

Classes:
    SimilaritySearchEngine: Top-K nearest neighbours by cosine distance, hard-filtered by tenant
        (and course for the ingestion path), never returning the query submission itself.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from plagiarism_guard.core.config import Settings, get_settings
from plagiarism_guard.core.errors import PersistenceError
from plagiarism_guard.schemas import SimilarSubmission
from plagiarism_guard.services.similarity_store import SimilarityStore

_LOGGER = logging.getLogger(__name__)


class SimilaritySearchEngine:
    def __init__(self, store: SimilarityStore, *, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._store = store
        self._max_top_k = settings.plagiarism_max_top_k
        self._timeout = settings.query_timeout_seconds

    def _bounded(self, top_k: int) -> int:
        if top_k > self._max_top_k:
            _LOGGER.debug("top_k=%d exceeds ceiling, using %d", top_k, self._max_top_k)
            return self._max_top_k
        return max(top_k, 0)

    async def search(
        self,
        query_vector: Sequence[float] | NDArray[np.floating],
        tenant_id: str,
        course_id: str,
        exclude_submission_id: str,
        top_k: int,
    ) -> list[SimilarSubmission]:
        k = self._bounded(top_k)
        if k == 0:
            return []
        return await self._with_timeout(
            self._store.query_top_k(query_vector, tenant_id, course_id, exclude_submission_id, k),
            exclude_submission_id,
        )

    async def find_similar_to(
        self,
        submission_id: str,
        tenant_id: str,
        top_k: int,
    ) -> list[SimilarSubmission]:
        """Tenant-wide neighbours of an already embedded submission (no course filter)."""

        k = self._bounded(top_k)
        if k == 0:
            return []
        return await self._with_timeout(
            self._store.query_top_k_for_existing(submission_id, tenant_id, k),
            submission_id,
        )

    async def _with_timeout(self, query, submission_id: str) -> list[SimilarSubmission]:
        try:
            return await asyncio.wait_for(query, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise PersistenceError(
                f"similarity query for {submission_id} timed out after {self._timeout}s"
            ) from exc
