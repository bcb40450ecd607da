"""Explicitly constructed bundle of everything one assistant instance shares."""

from dataclasses import dataclass

from ...config.settings import Settings
from ..ports.document_source_port import DocumentSourcePort
from ..ports.embedding_port import EmbeddingPort
from ..ports.feedback_port import FeedbackSinkPort
from ..ports.llm_port import ChatCompletionPort
from .query_cache import QueryCache


@dataclass
class RetrievalContext:
    """Collaborators and configuration passed into the agent service.

    The composition root owns its lifetime; components never create or look
    up shared state on their own.

    Attributes:
        settings: Tunable thresholds, limits and timeouts.
        sources: Document sources searched for every question.
        embedder: Embedding service.
        llm: Chat completion service (answers and LLM routing).
        cache: Answer cache shared by all requests, None to disable caching.
        feedback_sink: Receiver of feedback records (optional).
    """

    settings: Settings
    sources: list[DocumentSourcePort]
    embedder: EmbeddingPort
    llm: ChatCompletionPort
    cache: QueryCache | None = None
    feedback_sink: FeedbackSinkPort | None = None
