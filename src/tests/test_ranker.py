from __future__ import annotations

"""Similarity ranking tests."""

import pytest

from src.rag.ranker import cosine_similarity, rank, select_top
from src.rag.types import SimilarityCandidate


def test_cosine_identity_and_orthogonal() -> None:
    assert cosine_similarity([0.3, 0.4, 0.5], [0.3, 0.4, 0.5]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0


def test_cosine_mismatched_or_zero_vectors() -> None:
    assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0]) == 0.0
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
    assert cosine_similarity([], []) == 0.0


def test_select_top_applies_threshold_and_order() -> None:
    candidates = [
        SimilarityCandidate(chunk_id="low", text="c", score=0.6),
        SimilarityCandidate(chunk_id="mid", text="b", score=0.9),
        SimilarityCandidate(chunk_id="high", text="a", score=0.95),
    ]

    selected = select_top(candidates, threshold=0.7, limit=3)

    assert [item.chunk_id for item in selected] == ["high", "mid"]


def test_select_top_threshold_is_exclusive_and_limited() -> None:
    candidates = [
        SimilarityCandidate(chunk_id=str(idx), text="", score=score)
        for idx, score in enumerate([0.7, 0.8, 0.85, 0.9, 0.99])
    ]

    selected = select_top(candidates)

    assert [item.chunk_id for item in selected] == ["4", "3", "2"]


def test_rank_is_deterministic_and_stable_on_ties() -> None:
    query = [1.0, 0.0]
    items = [("a", [0.0, 1.0]), ("b", [1.0, 0.0]), ("c", [2.0, 0.0]), ("d", [1.0, 1.0])]

    first = rank(query, items)
    second = rank(query, items)

    assert first == second
    assert [item.item_id for item in first] == ["b", "c", "d", "a"]
