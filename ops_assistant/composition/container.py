"""Composition root wiring adapters to the agent service.

This is the only place that creates shared state (the answer cache, the
feedback store, the document sources); everything else receives it through
``RetrievalContext``.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from ..adapters.outbound.document_sources import JsonDocumentSource
from ..adapters.outbound.feedback import CorrectionSource, SQLiteFeedbackStore
from ..adapters.outbound.gemini import GeminiChatAdapter, GeminiEmbeddingAdapter
from ..config import Settings, settings
from ..core.domain import SourceKind
from ..core.ports.document_source_port import DocumentSourcePort
from ..core.services.agent_service import AgentService
from ..core.services.query_cache import QueryCache
from ..core.services.retrieval_context import RetrievalContext

logger = logging.getLogger(__name__)


def build_sources(cfg: Settings, feedback_store: SQLiteFeedbackStore | None = None) -> list[DocumentSourcePort]:
    """One source per document tier, in context priority order."""
    sources: list[DocumentSourcePort] = [
        JsonDocumentSource(SourceKind.HARVESTED, cfg.source_path(cfg.harvested_file)),
    ]
    if feedback_store is not None:
        sources.append(CorrectionSource(feedback_store))
    sources.extend(
        [
            JsonDocumentSource(SourceKind.CONTEXT, cfg.source_path(cfg.context_file)),
            JsonDocumentSource(SourceKind.WIKI, cfg.source_path(cfg.wiki_file)),
            JsonDocumentSource(SourceKind.KNOWLEDGE_BASE, cfg.source_path(cfg.knowledge_base_file)),
        ]
    )
    return sources


def build_query_cache(cfg: Settings) -> QueryCache | None:
    if not cfg.cache_enabled:
        return None
    return QueryCache(
        ttl_seconds=cfg.exact_cache_ttl_seconds,
        sliding_seconds=cfg.exact_cache_sliding_seconds,
        max_semantic_entries=cfg.max_semantic_cache_entries,
        max_exact_entries=cfg.max_exact_cache_entries,
        similarity_threshold=cfg.semantic_cache_threshold,
    )


def build_retrieval_context(cfg: Settings) -> RetrievalContext:
    """Create every collaborator for one assistant instance from settings."""
    cfg.ensure_directories()
    feedback_store = SQLiteFeedbackStore(cfg.feedback_db_path)
    return RetrievalContext(
        settings=cfg,
        sources=build_sources(cfg, feedback_store),
        embedder=GeminiEmbeddingAdapter(cfg.google_api_key, model_name=cfg.embedding_model),
        llm=GeminiChatAdapter(
            cfg.google_api_key,
            model=cfg.llm_model,
            temperature=cfg.llm_temperature,
            max_tokens=cfg.llm_max_tokens,
        ),
        cache=build_query_cache(cfg),
        feedback_sink=feedback_store,
    )


@lru_cache
def get_retrieval_context() -> RetrievalContext:
    logger.info("Initializing RetrievalContext (composition root)...")
    return build_retrieval_context(settings)


@lru_cache
def get_agent_service() -> AgentService:
    logger.info("Initializing AgentService...")
    return AgentService(get_retrieval_context())
