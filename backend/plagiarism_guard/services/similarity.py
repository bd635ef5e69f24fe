"""Cosine similarity helpers shared by the SQLite ranking path and the tests.

Functions:
    as_vector(values, dim): Coerce a sequence to a float32 vector and enforce its dimensionality.
    cosine_similarities(query, matrix): Similarity of ``query`` against every row of ``matrix``.
    rank_candidates(query, candidates, top_k): Order candidates by descending similarity.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from plagiarism_guard.core.errors import DimensionMismatchError

_EPS = 1e-12


@dataclass(slots=True)
class Candidate:
    """Stored embedding joined with the submission columns a result needs."""

    submission_id: str
    user_id: str
    submitted_at: datetime
    embedding: Any


def as_vector(values: Sequence[float] | NDArray[np.floating], dim: int | None = None) -> NDArray[np.float32]:
    vector = np.asarray(values, dtype=np.float32).reshape(-1)
    if dim is not None and vector.shape[0] != dim:
        raise DimensionMismatchError(dim, int(vector.shape[0]))
    return vector


def cosine_similarities(query: NDArray[np.floating], matrix: NDArray[np.floating]) -> NDArray[np.float64]:
    """Return ``1 - cosine_distance`` for each row; zero-norm rows score 0.0."""

    query64 = np.asarray(query, dtype=np.float64)
    matrix64 = np.atleast_2d(np.asarray(matrix, dtype=np.float64))
    if matrix64.size == 0:
        return np.zeros(0, dtype=np.float64)
    norms = np.linalg.norm(matrix64, axis=1) * np.linalg.norm(query64)
    dots = matrix64 @ query64
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > _EPS, dots / np.maximum(norms, _EPS), 0.0)
    return np.clip(scores, -1.0, 1.0)


def rank_candidates(
    query: NDArray[np.floating],
    candidates: Sequence[Candidate],
    top_k: int,
) -> list[tuple[Candidate, float]]:
    if not candidates or top_k <= 0:
        return []
    matrix = np.vstack([as_vector(candidate.embedding) for candidate in candidates])
    scores = cosine_similarities(query, matrix)
    order = sorted(
        range(len(candidates)),
        key=lambda idx: (-float(scores[idx]), candidates[idx].submission_id),
    )
    return [(candidates[idx], float(scores[idx])) for idx in order[:top_k]]
