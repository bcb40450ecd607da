"""Two-tier answer cache: exact normalized text, then embedding similarity.

The cache is advisory. A lost update only costs a repeated LLM call, but
every entry is built completely before it is published under the lock, so
a reader never observes a half-written entry.
"""

import logging
import re
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from ..domain import CacheEntry
from ..domain.vector_math import batch_cosine_similarity, cosine_similarity

logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]")


@dataclass
class _ExactSlot:
    entry: CacheEntry
    expires_at: float


class QueryCache:
    """Answer cache shared by all concurrent requests.

    Exact tier: keyed by the normalized question, expiring ``ttl_seconds``
    after insertion; every hit pushes expiry to at least ``sliding_seconds``
    from now, so a popular question never expires. At most
    ``max_exact_entries`` questions are kept: a write into a full tier first
    purges expired questions, then drops the least recently used one.

    Semantic tier: at most ``max_semantic_entries`` embeddings. A lookup
    returns the best entry scoring strictly above ``similarity_threshold``;
    inserting into a full tier evicts the least recently accessed entry. An
    exact hit counts as an access in both tiers.
    """

    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        sliding_seconds: float = 10 * 60,
        max_semantic_entries: int = 500,
        max_exact_entries: int = 500,
        similarity_threshold: float = 0.95,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.sliding_seconds = sliding_seconds
        self.max_semantic_entries = max_semantic_entries
        self.max_exact_entries = max_exact_entries
        self.similarity_threshold = similarity_threshold
        self._clock = clock
        self._lock = threading.Lock()
        # Insertion order doubles as recency order: least recent first
        self._exact: OrderedDict[str, _ExactSlot] = OrderedDict()
        self._semantic: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lookups = 0
        self._exact_hits = 0
        self._semantic_hits = 0
        self._evictions = 0

    @staticmethod
    def normalize_query(query: str) -> str:
        """Lowercase, strip punctuation and collapse whitespace."""
        return " ".join(_PUNCTUATION.sub(" ", query.lower()).split())

    def get_exact(self, query: str) -> CacheEntry | None:
        key = self.normalize_query(query)
        if not key:
            return None
        now = self._clock()
        with self._lock:
            self._lookups += 1
            slot = self._exact.get(key)
            if slot is None:
                return None
            if now >= slot.expires_at:
                del self._exact[key]
                return None
            slot.expires_at = max(slot.expires_at, now + self.sliding_seconds)
            self._exact.move_to_end(key)
            # Same entry object as the semantic tier; keep both recency orders in step
            if self._semantic.get(key) is slot.entry:
                self._semantic.move_to_end(key)
            slot.entry.last_accessed_at = now
            slot.entry.use_count += 1
            self._exact_hits += 1
            logger.info("Cache HIT (exact match)")
            return replace(slot.entry)

    def get_semantic(self, embedding: Sequence[float] | None) -> tuple[CacheEntry, float] | None:
        """Best semantic entry above the threshold, with its similarity."""
        if not embedding:
            return None

        with self._lock:
            snapshot = list(self._semantic.items())
        if not snapshot:
            return None

        matches = batch_cosine_similarity(
            embedding, [entry.embedding for _, entry in snapshot], top_k=1
        )
        if not matches:
            return None
        index, similarity = matches[0]
        if similarity <= self.similarity_threshold:
            return None

        key, entry = snapshot[index]
        now = self._clock()
        with self._lock:
            current = self._semantic.get(key)
            # Replaced or evicted while scoring
            if current is not entry:
                return None
            entry.last_accessed_at = now
            entry.use_count += 1
            self._semantic.move_to_end(key)
            self._semantic_hits += 1
        logger.info(f"Cache HIT (semantic, similarity {similarity:.3f})")
        return replace(entry), similarity

    def store(
        self,
        query: str,
        response: str,
        sources_used: Sequence[str] = (),
        embedding: Sequence[float] | None = None,
    ) -> None:
        """Cache an answer in the exact tier and, with an embedding, the semantic tier.

        A semantic entry that is already a near-duplicate of the new one is
        replaced instead of adding a second copy.
        """
        key = self.normalize_query(query)
        if not key:
            return
        now = self._clock()
        entry = CacheEntry(
            normalized_query=key,
            embedding=tuple(float(x) for x in embedding) if embedding else (),
            response=response,
            sources_used=tuple(sources_used),
            created_at=now,
            last_accessed_at=now,
        )

        with self._lock:
            if key not in self._exact and len(self._exact) >= self.max_exact_entries:
                self._purge_expired_locked(now)
                while len(self._exact) >= self.max_exact_entries:
                    evicted_key, _ = self._exact.popitem(last=False)
                    logger.debug(f"Exact cache evicted '{evicted_key}'")
            self._exact[key] = _ExactSlot(entry=entry, expires_at=now + self.ttl_seconds)
            self._exact.move_to_end(key)

            if not entry.embedding:
                return

            duplicate = next(
                (
                    k
                    for k, existing in self._semantic.items()
                    if k == key
                    or cosine_similarity(existing.embedding, entry.embedding) > self.similarity_threshold
                ),
                None,
            )
            if duplicate is not None:
                del self._semantic[duplicate]

            while len(self._semantic) >= self.max_semantic_entries:
                evicted_key, _ = self._semantic.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Semantic cache evicted '{evicted_key}'")

            self._semantic[key] = entry

    def purge_expired(self) -> int:
        """Drop expired exact entries; returns how many were removed."""
        now = self._clock()
        with self._lock:
            return self._purge_expired_locked(now)

    def _purge_expired_locked(self, now: float) -> int:
        expired = [k for k, slot in self._exact.items() if now >= slot.expires_at]
        for k in expired:
            del self._exact[k]
        return len(expired)

    def semantic_entries(self) -> list[CacheEntry]:
        """Copies of the semantic entries, least recently used first."""
        with self._lock:
            return [replace(entry) for entry in self._semantic.values()]

    def clear(self) -> None:
        with self._lock:
            self._exact.clear()
            self._semantic.clear()

    def stats(self) -> dict[str, int | float]:
        with self._lock:
            hits = self._exact_hits + self._semantic_hits
            return {
                "exact_entries": len(self._exact),
                "semantic_entries": len(self._semantic),
                "lookups": self._lookups,
                "exact_hits": self._exact_hits,
                "semantic_hits": self._semantic_hits,
                "evictions": self._evictions,
                "hit_rate": hits / self._lookups if self._lookups else 0.0,
            }
