"""Submission embedding persistence model.

Classes:
    SubmissionEmbedding: One vector plus the latest highest-similarity score per submission.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from plagiarism_guard.core.config import get_settings

EMBEDDING_DIM = get_settings().embedding_dim


class SubmissionEmbedding(SQLModel, table=True):
    __tablename__ = "submission_embeddings"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    submission_id: str = Field(unique=True, index=True)
    tenant_id: str = Field(index=True)
    course_id: str = Field(index=True)
    embedding: Any = Field(sa_column=Column(Vector(EMBEDDING_DIM), nullable=False))
    highest_similarity: float = Field(default=0.0)
    checked_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
