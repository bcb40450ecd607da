"""Cosine similarity over embedding vectors.

Mismatched, empty or zero-magnitude vectors compare as 0.0 instead of
raising, so a document without an embedding simply never wins a semantic
ranking.
"""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

Vector = Sequence[float]

# Candidate count above which batch scoring is spread over a thread pool
PARALLEL_THRESHOLD = 100


def cosine_similarity(a: Vector, b: Vector) -> float:
    """Cosine similarity of two vectors, clamped to [-1, 1].

    Returns 0.0 when either vector is empty, the lengths differ or either
    vector has zero magnitude.
    """
    if len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a <= 0 or norm_b <= 0:
        return 0.0

    value = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, value))


def _score_chunk(query: Vector, candidates: Sequence[Vector], offset: int) -> list[tuple[int, float]]:
    return [(offset + i, cosine_similarity(query, c)) for i, c in enumerate(candidates)]


def batch_cosine_similarity(
    query: Vector,
    candidates: Sequence[Vector],
    top_k: int,
    min_similarity: float = 0.0,
    parallel_threshold: int = PARALLEL_THRESHOLD,
    max_workers: int | None = None,
) -> list[tuple[int, float]]:
    """Score every candidate against the query and keep the best matches.

    Args:
        query: Query embedding.
        candidates: Candidate embeddings, addressed by position.
        top_k: Maximum number of matches to return.
        min_similarity: Matches scoring below this are dropped.
        parallel_threshold: Candidate count above which scoring runs in a
            thread pool. The result is identical either way.
        max_workers: Thread pool size (defaults to the executor's choice).

    Returns:
        (candidate_index, score) pairs sorted by score descending, ties
        broken by candidate index ascending.
    """
    if top_k <= 0 or not candidates:
        return []

    if len(candidates) > parallel_threshold:
        chunk_size = max(1, parallel_threshold)
        scored: list[tuple[int, float]] = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(_score_chunk, query, candidates[start : start + chunk_size], start)
                for start in range(0, len(candidates), chunk_size)
            ]
            for future in futures:
                scored.extend(future.result())
    else:
        scored = _score_chunk(query, candidates, 0)

    matches = [(index, score) for index, score in scored if score >= min_similarity]
    matches.sort(key=lambda pair: (-pair[1], pair[0]))
    return matches[:top_k]
