from __future__ import annotations

"""Cosine similarity ranking for retrieved document chunks."""

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from src.rag.types import SimilarityCandidate

DEFAULT_THRESHOLD = 0.7
DEFAULT_TOP_K = 3


@dataclass(frozen=True)
class RankedItem:
    """Identifier paired with its similarity to the query."""
    item_id: str
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute cosine similarity, returning 0.0 for mismatched or zero vectors."""
    if len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank(
    query_vector: Sequence[float], items: Iterable[tuple[str, Sequence[float]]]
) -> list[RankedItem]:
    """Score every (id, vector) pair and order by descending similarity.

    Ties keep their input order.
    """
    scored = [
        RankedItem(item_id=item_id, score=cosine_similarity(query_vector, vector))
        for item_id, vector in items
    ]
    return sorted(scored, key=lambda item: item.score, reverse=True)


def select_top(
    candidates: Iterable[SimilarityCandidate],
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_TOP_K,
) -> list[SimilarityCandidate]:
    """Keep candidates scoring strictly above the threshold, best first."""
    kept = [candidate for candidate in candidates if candidate.score > threshold]
    kept.sort(key=lambda candidate: candidate.score, reverse=True)
    return kept[:limit]
