"""Tests for the cosine ranking helpers."""

from __future__ import annotations

from datetime import datetime, timezone

import numpy as np
import pytest

from plagiarism_guard.core.errors import DimensionMismatchError
from plagiarism_guard.services.similarity import Candidate, as_vector, cosine_similarities, rank_candidates


def _candidate(submission_id: str, vector: list[float]) -> Candidate:
    return Candidate(
        submission_id=submission_id,
        user_id=f"user-{submission_id}",
        submitted_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        embedding=np.asarray(vector, dtype=np.float32),
    )


def test_similarity_stays_within_unit_bounds_for_random_unit_vectors():
    rng = np.random.default_rng(7)
    matrix = rng.normal(size=(200, 16))
    matrix /= np.linalg.norm(matrix, axis=1, keepdims=True)
    query = matrix[0]

    scores = cosine_similarities(query, matrix)

    assert scores.shape == (200,)
    assert np.all(scores >= -1.0)
    assert np.all(scores <= 1.0)
    assert scores[0] == pytest.approx(1.0, abs=1e-9)


def test_opposite_vectors_keep_negative_similarity():
    scores = cosine_similarities(np.array([1.0, 0.0]), np.array([[-1.0, 0.0], [0.0, 1.0]]))

    assert scores[0] == pytest.approx(-1.0)
    assert scores[1] == pytest.approx(0.0)


def test_zero_vector_scores_zero():
    scores = cosine_similarities(np.array([1.0, 0.0]), np.array([[0.0, 0.0]]))
    assert scores[0] == 0.0


def test_rank_orders_by_similarity_then_submission_id():
    candidates = [
        _candidate("sub-c", [0.0, 1.0]),
        _candidate("sub-b", [1.0, 0.0]),
        _candidate("sub-a", [1.0, 0.0]),
        _candidate("sub-d", [0.99, 0.01]),
    ]

    ranked = rank_candidates(np.array([1.0, 0.0], dtype=np.float32), candidates, top_k=3)

    assert [candidate.submission_id for candidate, _ in ranked] == ["sub-a", "sub-b", "sub-d"]
    assert ranked[0][1] == pytest.approx(1.0)
    assert ranked[2][1] < ranked[1][1]


def test_rank_handles_empty_input():
    assert rank_candidates(np.array([1.0, 0.0]), [], top_k=5) == []


def test_as_vector_rejects_wrong_dimension():
    with pytest.raises(DimensionMismatchError) as excinfo:
        as_vector([1.0, 0.0, 0.0], dim=2)

    assert excinfo.value.expected == 2
    assert excinfo.value.actual == 3
