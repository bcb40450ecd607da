"""Per-source hybrid search fused with Reciprocal Rank Fusion.

Each source is searched twice: a keyword pass over title, content and tags,
and a semantic pass over the precomputed embeddings. The two rankings are
merged with RRF:

    score(d) = 1 / (k + keyword_rank(d)) + 1 / (k + semantic_rank(d))

where a document missing from one ranking contributes nothing for it.
"""

import asyncio
import logging
import math
import time
from collections.abc import Sequence

from ..domain import Document, RetrievalQuery, SearchResult, SourceKind
from ..domain.exceptions import SourceTimeoutError, SourceUnavailableError
from ..domain.text_analysis import extract_search_terms, normalize_for_search
from ..domain.vector_math import PARALLEL_THRESHOLD, batch_cosine_similarity, cosine_similarity
from ..ports.document_source_port import DocumentSourcePort
from ...common.exception_handler import log_exception

logger = logging.getLogger(__name__)

RRF_K = 60


def reciprocal_rank_fusion(
    keyword_ranking: Sequence[str],
    semantic_ranking: Sequence[str],
    k: int = RRF_K,
) -> list[tuple[str, float]]:
    """Fuse two rankings of document ids.

    Args:
        keyword_ranking: Ids in keyword-rank order (best first).
        semantic_ranking: Ids in semantic-rank order (best first).
        k: RRF smoothing constant.

    Returns:
        (id, score) pairs sorted by score descending, ties broken by keyword
        rank ascending (unranked last) and then by id.
    """
    keyword_ranks = {doc_id: rank for rank, doc_id in enumerate(keyword_ranking, start=1)}
    semantic_ranks = {doc_id: rank for rank, doc_id in enumerate(semantic_ranking, start=1)}

    scores: dict[str, float] = {}
    for doc_id in list(keyword_ranks) + list(semantic_ranks):
        if doc_id in scores:
            continue
        score = 0.0
        if doc_id in keyword_ranks:
            score += 1.0 / (k + keyword_ranks[doc_id])
        if doc_id in semantic_ranks:
            score += 1.0 / (k + semantic_ranks[doc_id])
        scores[doc_id] = score

    return sorted(
        scores.items(),
        key=lambda item: (-item[1], keyword_ranks.get(item[0], math.inf), item[0]),
    )


class HybridRetriever:
    """Searches document sources with keyword and vector ranking fused by RRF."""

    def __init__(
        self,
        rrf_k: int = RRF_K,
        semantic_min_similarity: float = 0.25,
        parallel_threshold: int = PARALLEL_THRESHOLD,
        source_timeout: float = 8.0,
    ) -> None:
        """Initialize the retriever.

        Args:
            rrf_k: RRF constant shared by every source so scores compare.
            semantic_min_similarity: Similarity floor for the semantic ranking.
            parallel_threshold: Candidate count above which cosine scoring is
                spread over threads.
            source_timeout: Seconds allowed for one source search.
        """
        self.rrf_k = rrf_k
        self.semantic_min_similarity = semantic_min_similarity
        self.parallel_threshold = parallel_threshold
        self.source_timeout = source_timeout

    def keyword_ranking(self, documents: Sequence[Document], query: RetrievalQuery) -> list[Document]:
        """Documents matching the query phrases or any search term.

        Whole-phrase matches of the question or a sub-query rank before
        term-only matches; more matched terms rank higher; ties keep source
        order.
        """
        phrases = [normalize_for_search(q).strip(" ?¿!¡.") for q in (query.text, *query.sub_queries)]
        phrases = [p for p in dict.fromkeys(phrases) if p]
        terms = {
            normalize_for_search(t)
            for t in extract_search_terms(query.expanded) | extract_search_terms(query.text)
        }

        scored: list[tuple[int, int, int, Document]] = []
        for position, doc in enumerate(documents):
            haystack = normalize_for_search(" ".join((doc.title, doc.content, " ".join(doc.keywords))))
            phrase_hits = sum(1 for p in phrases if p in haystack)
            term_hits = sum(1 for t in terms if t in haystack)
            if phrase_hits or term_hits:
                scored.append((phrase_hits, term_hits, position, doc))

        scored.sort(key=lambda item: (-item[0], -item[1], item[2]))
        return [doc for _, _, _, doc in scored]

    def semantic_ranking(
        self, documents: Sequence[Document], embedding: Sequence[float] | None
    ) -> list[tuple[Document, float]]:
        """Documents with embeddings ordered by cosine similarity to the query."""
        if not embedding:
            return []
        candidates = [doc for doc in documents if doc.has_embedding]
        matches = batch_cosine_similarity(
            embedding,
            [doc.embedding for doc in candidates],
            top_k=len(candidates),
            min_similarity=self.semantic_min_similarity,
            parallel_threshold=self.parallel_threshold,
        )
        return [(candidates[index], score) for index, score in matches]

    def search(
        self, documents: Sequence[Document], query: RetrievalQuery, top_k: int
    ) -> list[SearchResult]:
        """Rank one source's documents for a query.

        Args:
            documents: Snapshot of the source.
            query: The prepared retrieval query.
            top_k: Maximum number of results.

        Returns:
            Fused results, best first, with 1-based ranks.
        """
        if top_k <= 0 or not documents:
            return []

        keyword_docs = self.keyword_ranking(documents, query)
        semantic = self.semantic_ranking(documents, query.embedding)

        by_id: dict[str, Document] = {}
        for doc in keyword_docs:
            by_id.setdefault(doc.id, doc)
        similarities: dict[str, float] = {}
        for doc, score in semantic:
            by_id.setdefault(doc.id, doc)
            similarities.setdefault(doc.id, score)
        # Keyword hits below the semantic floor still report how far they are
        if query.embedding:
            for doc in keyword_docs:
                if doc.id not in similarities and doc.has_embedding:
                    similarities[doc.id] = cosine_similarity(query.embedding, doc.embedding)

        keyword_ids = list(dict.fromkeys(doc.id for doc in keyword_docs))
        semantic_ids = list(dict.fromkeys(doc.id for doc, _ in semantic))
        keyword_ranks = {doc_id: rank for rank, doc_id in enumerate(keyword_ids, start=1)}
        semantic_ranks = {doc_id: rank for rank, doc_id in enumerate(semantic_ids, start=1)}

        fused = reciprocal_rank_fusion(keyword_ids, semantic_ids, k=self.rrf_k)
        return [
            SearchResult(
                document=by_id[doc_id],
                score=score,
                rank=rank,
                similarity=similarities.get(doc_id),
                keyword_rank=keyword_ranks.get(doc_id),
                semantic_rank=semantic_ranks.get(doc_id),
            )
            for rank, (doc_id, score) in enumerate(fused[:top_k], start=1)
        ]

    async def search_source(
        self, source: DocumentSourcePort, query: RetrievalQuery, top_k: int
    ) -> list[SearchResult]:
        """Search one source; a failing or slow source yields no results."""
        start = time.perf_counter()
        try:
            results = await asyncio.wait_for(
                self._search_source(source, query, top_k), timeout=self.source_timeout
            )
        except TimeoutError as e:
            log_exception(
                SourceTimeoutError(
                    f"Source '{source.name}' timed out", cause=e, context={"timeout": self.source_timeout}
                ),
                log=logger,
                level=logging.WARNING,
            )
            return []
        except Exception as e:
            log_exception(
                SourceUnavailableError(f"Source '{source.name}' failed", cause=e),
                log=logger,
                level=logging.WARNING,
            )
            return []

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"Source '{source.name}': {len(results)} results in {elapsed_ms:.0f}ms")
        return results

    async def _search_source(
        self, source: DocumentSourcePort, query: RetrievalQuery, top_k: int
    ) -> list[SearchResult]:
        documents = await source.list_all()
        return await asyncio.to_thread(self.search, documents, query, top_k)

    async def search_all(
        self, sources: Sequence[DocumentSourcePort], query: RetrievalQuery, top_k: int
    ) -> dict[SourceKind, list[SearchResult]]:
        """Search every source concurrently and wait for all of them.

        Sources of the same kind are merged, keeping the best result per
        document id.
        """
        results = await asyncio.gather(*(self.search_source(s, query, top_k) for s in sources))

        per_kind: dict[SourceKind, list[SearchResult]] = {}
        for source, source_results in zip(sources, results, strict=True):
            merged = per_kind.setdefault(source.kind, [])
            merged.extend(source_results)

        for kind, merged in per_kind.items():
            best: dict[str, SearchResult] = {}
            for result in merged:
                current = best.get(result.document.id)
                if current is None or result.score > current.score:
                    best[result.document.id] = result
            per_kind[kind] = sorted(best.values(), key=lambda r: (-r.score, r.document.id))

        return per_kind
