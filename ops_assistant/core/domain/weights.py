"""Intent-driven source weights applied before context assembly."""

from dataclasses import dataclass

from .document import Document, SourceKind
from .query import QueryIntent


@dataclass(frozen=True)
class SearchWeights:
    """Score multipliers per kind of evidence.

    Context documents are split in two: ticket-creation forms use ``ticket``
    and everything else in that source is reference data.
    """

    ticket: float = 1.0
    wiki: float = 1.0
    knowledge_base: float = 1.0
    reference: float = 1.0
    harvested: float = 1.0
    correction: float = 1.0

    def for_result(self, kind: SourceKind, document: Document) -> float:
        """Weight for a document coming from the given source."""
        if kind is SourceKind.HARVESTED:
            return self.harvested
        if kind is SourceKind.CORRECTION:
            return self.correction
        if kind is SourceKind.WIKI:
            return self.wiki
        if kind is SourceKind.KNOWLEDGE_BASE:
            return self.knowledge_base
        return self.ticket if document.is_ticket else self.reference


INTENT_WEIGHTS: dict[QueryIntent, SearchWeights] = {
    QueryIntent.GENERAL: SearchWeights(),
    QueryIntent.TICKET_REQUEST: SearchWeights(
        ticket=2.5, wiki=0.5, knowledge_base=0.3, reference=0.2, harvested=0.8, correction=1.0
    ),
    QueryIntent.HOW_TO: SearchWeights(
        ticket=0.5, wiki=2.5, knowledge_base=1.5, reference=0.3, harvested=1.2, correction=1.5
    ),
    QueryIntent.LOOKUP: SearchWeights(
        ticket=0.2, wiki=0.5, knowledge_base=0.3, reference=3.0, harvested=0.5, correction=1.0
    ),
    QueryIntent.TROUBLESHOOTING: SearchWeights(
        ticket=1.5, wiki=2.0, knowledge_base=1.5, reference=0.3, harvested=2.0, correction=1.5
    ),
}


def weights_for(intent: QueryIntent) -> SearchWeights:
    return INTENT_WEIGHTS[intent]
