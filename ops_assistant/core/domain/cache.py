"""Cached answer model."""

from dataclasses import dataclass


@dataclass
class CacheEntry:
    """A previously generated answer.

    The payload fields (query, embedding, response, sources) are written
    once at construction; only the access bookkeeping changes afterwards.
    """

    normalized_query: str
    embedding: tuple[float, ...]
    response: str
    sources_used: tuple[str, ...]
    created_at: float
    last_accessed_at: float
    use_count: int = 0
