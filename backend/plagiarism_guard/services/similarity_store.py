"""Persistence for submission embeddings.

Classes:
    SimilarityStore: Owns ``submission_embeddings``; atomic upsert plus tenant-scoped top-K queries.

On PostgreSQL the ranking is pushed down to pgvector's ``<=>`` operator. Other dialects (SQLite for
local runs and tests) load the scope-filtered rows and rank them with numpy. Both paths order by
ascending cosine distance, then submission id.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence
from uuid import uuid4

import numpy as np
from numpy.typing import NDArray
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from plagiarism_guard.core.config import get_settings
from plagiarism_guard.core.errors import PersistenceError
from plagiarism_guard.db.session import dialect_name, tenant_session
from plagiarism_guard.models import Submission, SubmissionEmbedding
from plagiarism_guard.schemas import SimilarSubmission
from plagiarism_guard.services.similarity import Candidate, as_vector, rank_candidates


class SimilarityStore:
    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        *,
        dim: Optional[int] = None,
    ) -> None:
        self._session_factory = session_factory
        self._dim = dim or get_settings().embedding_dim

    @property
    def dim(self) -> int:
        return self._dim

    async def upsert(
        self,
        submission_id: str,
        tenant_id: str,
        course_id: str,
        vector: Sequence[float] | NDArray[np.floating],
        highest_similarity: float,
    ) -> None:
        """Insert or overwrite the embedding row for ``submission_id`` in one statement."""

        array = as_vector(vector, self._dim)
        try:
            async with tenant_session(tenant_id, self._session_factory) as session:
                insert = postgresql.insert if dialect_name(session) == "postgresql" else sqlite.insert
                table = SubmissionEmbedding.__table__
                stmt = insert(table).values(
                    id=uuid4(),
                    submission_id=submission_id,
                    tenant_id=tenant_id,
                    course_id=course_id,
                    embedding=array.tolist(),
                    highest_similarity=float(highest_similarity),
                    checked_at=datetime.now(timezone.utc),
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["submission_id"],
                    set_={
                        "embedding": stmt.excluded.embedding,
                        "highest_similarity": stmt.excluded.highest_similarity,
                        "checked_at": stmt.excluded.checked_at,
                    },
                    where=table.c.tenant_id == stmt.excluded.tenant_id,
                )
                await session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"upsert failed for submission {submission_id}: {exc}") from exc

    async def get(self, submission_id: str, tenant_id: str) -> Optional[SubmissionEmbedding]:
        try:
            async with tenant_session(tenant_id, self._session_factory) as session:
                return await self._load(session, submission_id, tenant_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"embedding lookup failed for {submission_id}: {exc}") from exc

    async def query_top_k(
        self,
        vector: Sequence[float] | NDArray[np.floating],
        tenant_id: str,
        course_id: str,
        exclude_id: str,
        k: int,
    ) -> list[SimilarSubmission]:
        array = as_vector(vector, self._dim)
        try:
            async with tenant_session(tenant_id, self._session_factory) as session:
                return await self._rank(
                    session,
                    array,
                    tenant_id=tenant_id,
                    course_id=course_id,
                    exclude_id=exclude_id,
                    k=k,
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"similarity query failed for {exclude_id}: {exc}") from exc

    async def query_top_k_for_existing(
        self,
        submission_id: str,
        tenant_id: str,
        k: int,
    ) -> list[SimilarSubmission]:
        """Rank every other embedding of the tenant against the stored vector of ``submission_id``.

        Returns an empty list when the submission has not been embedded yet.
        """

        try:
            async with tenant_session(tenant_id, self._session_factory) as session:
                source = await self._load(session, submission_id, tenant_id)
                if source is None:
                    return []
                return await self._rank(
                    session,
                    as_vector(source.embedding, self._dim),
                    tenant_id=tenant_id,
                    course_id=None,
                    exclude_id=submission_id,
                    k=k,
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"similarity query failed for {submission_id}: {exc}") from exc

    async def _load(
        self,
        session: AsyncSession,
        submission_id: str,
        tenant_id: str,
    ) -> Optional[SubmissionEmbedding]:
        result = await session.exec(
            select(SubmissionEmbedding).where(
                SubmissionEmbedding.submission_id == submission_id,
                SubmissionEmbedding.tenant_id == tenant_id,
            )
        )
        return result.scalars().first()

    async def _rank(
        self,
        session: AsyncSession,
        query: NDArray[np.float32],
        *,
        tenant_id: str,
        course_id: Optional[str],
        exclude_id: str,
        k: int,
    ) -> list[SimilarSubmission]:
        filters = [
            SubmissionEmbedding.tenant_id == tenant_id,
            SubmissionEmbedding.submission_id != exclude_id,
            Submission.tenant_id == tenant_id,
        ]
        if course_id is not None:
            filters.append(SubmissionEmbedding.course_id == course_id)

        if dialect_name(session) == "postgresql":
            distance = SubmissionEmbedding.embedding.cosine_distance(query.tolist())
            stmt = (
                select(
                    SubmissionEmbedding.submission_id,
                    Submission.user_id,
                    Submission.submitted_at,
                    (1 - distance).label("similarity"),
                )
                .join(Submission, Submission.id == SubmissionEmbedding.submission_id)
                .where(*filters)
                .order_by(distance, SubmissionEmbedding.submission_id)
                .limit(k)
            )
            rows = (await session.exec(stmt)).all()
            return [
                SimilarSubmission(
                    submission_id=row.submission_id,
                    user_id=row.user_id,
                    similarity=float(row.similarity),
                    submitted_at=row.submitted_at,
                )
                for row in rows
            ]

        stmt = (
            select(
                SubmissionEmbedding.submission_id,
                SubmissionEmbedding.embedding,
                Submission.user_id,
                Submission.submitted_at,
            )
            .join(Submission, Submission.id == SubmissionEmbedding.submission_id)
            .where(*filters)
        )
        rows = (await session.exec(stmt)).all()
        candidates = [
            Candidate(
                submission_id=row.submission_id,
                user_id=row.user_id,
                submitted_at=row.submitted_at,
                embedding=row.embedding,
            )
            for row in rows
        ]
        return [
            SimilarSubmission(
                submission_id=candidate.submission_id,
                user_id=candidate.user_id,
                similarity=score,
                submitted_at=candidate.submitted_at,
            )
            for candidate, score in rank_candidates(query, candidates, k)
        ]
