"""Query classification models."""

from dataclasses import dataclass, field
from enum import Enum


class QueryIntent(Enum):
    """Coarse purpose of a user question.

    Attributes:
        GENERAL: Anything that matches no more specific intent.
        HOW_TO: Step-by-step instructions are wanted.
        TICKET_REQUEST: The user wants to open a support ticket.
        LOOKUP: Reference data such as plant or company codes.
        TROUBLESHOOTING: Something is broken and needs fixing.
    """

    GENERAL = "general"
    HOW_TO = "how_to"
    TICKET_REQUEST = "ticket_request"
    LOOKUP = "lookup"
    TROUBLESHOOTING = "troubleshooting"


class QueryDomain(Enum):
    """Subject-matter area a question belongs to."""

    GENERAL = "General"
    SAP = "SAP"
    NETWORK = "Network"
    PLM = "PLM"
    EDI = "EDI"
    MES = "MES"
    WORKPLACE = "Workplace"
    INFRASTRUCTURE = "Infrastructure"
    CYBERSECURITY = "Cybersecurity"


class RoutingMethod(Enum):
    """How the domain of a question was decided."""

    KEYWORD = "keyword"
    HISTORY = "history"
    LLM = "llm"
    DEFAULT = "default"


@dataclass(frozen=True)
class QueryClassification:
    """Result of classifying a question."""

    intent: QueryIntent
    domain: QueryDomain
    routed_by: RoutingMethod = RoutingMethod.DEFAULT


@dataclass(frozen=True)
class RetrievalQuery:
    """Everything the retriever needs to search one question.

    Attributes:
        text: The question as asked.
        expanded: Question plus synonym expansions, used for keyword terms.
        sub_queries: Decomposed parts, the original question first.
        embedding: Query embedding, or None when the embedding service failed.
    """

    text: str
    expanded: str
    sub_queries: tuple[str, ...] = field(default_factory=tuple)
    embedding: tuple[float, ...] | None = None
