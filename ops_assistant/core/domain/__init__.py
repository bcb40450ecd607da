"""Domain models for the operations assistant.

- document: Document, SearchResult and SourceKind
- query: QueryIntent, QueryDomain and classification results
- context: ContextItem and ContextBlock handed to the chat model
- cache: CacheEntry
- agent: ChatMessage, AgentResponse and FeedbackRecord
- domains / weights: the per-domain and per-intent configuration tables

All models are re-exported here:

    from ops_assistant.core.domain import Document, SearchResult, QueryIntent
"""

from .agent import AgentResponse, ChatMessage, FeedbackRecord
from .cache import CacheEntry
from .context import ContextBlock, ContextItem
from .document import Document, SearchResult, SourceKind
from .domains import DOMAIN_PROFILES, DomainProfile, profile_for
from .query import (
    QueryClassification,
    QueryDomain,
    QueryIntent,
    RetrievalQuery,
    RoutingMethod,
)
from .weights import INTENT_WEIGHTS, SearchWeights, weights_for

__all__ = [
    # Document models
    "Document",
    "SearchResult",
    "SourceKind",
    # Query models
    "QueryIntent",
    "QueryDomain",
    "QueryClassification",
    "RetrievalQuery",
    "RoutingMethod",
    # Context models
    "ContextItem",
    "ContextBlock",
    # Cache models
    "CacheEntry",
    # Agent models
    "ChatMessage",
    "AgentResponse",
    "FeedbackRecord",
    # Configuration tables
    "DomainProfile",
    "DOMAIN_PROFILES",
    "profile_for",
    "SearchWeights",
    "INTENT_WEIGHTS",
    "weights_for",
]
