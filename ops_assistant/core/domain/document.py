"""Document and search result models shared by every document source."""

from dataclasses import dataclass, field
from enum import Enum

# Links containing one of these point at a service-desk request form
TICKET_URL_MARKERS = ("atlassian.net/servicedesk", "/servicedesk/customer/portal")


class SourceKind(Enum):
    """Document sources, listed in context priority order.

    Harvested solutions come first because they were validated against
    resolved tickets; static knowledge-base articles come last.
    """

    HARVESTED = "harvested"
    CORRECTION = "correction"
    CONTEXT = "context"
    WIKI = "wiki"
    KNOWLEDGE_BASE = "knowledge_base"

    @property
    def priority(self) -> int:
        """Zero-based tier position, lower is placed earlier."""
        return list(SourceKind).index(self)


@dataclass(frozen=True)
class Document:
    """A searchable item from one of the document sources.

    Attributes:
        id: Stable identifier, unique within its source.
        title: Title or name shown to the user.
        content: Primary searchable text.
        keywords: Curated tags searched in addition to the text.
        embedding: Precomputed embedding; empty means keyword search only.
        source_link: Optional URL; service-desk links mark ticket forms.
        category: Optional domain tag such as "SAP" or "Network".
    """

    id: str
    title: str
    content: str
    keywords: tuple[str, ...] = field(default_factory=tuple)
    embedding: tuple[float, ...] = field(default_factory=tuple)
    source_link: str | None = None
    category: str | None = None

    @property
    def is_ticket(self) -> bool:
        """Whether this document is an actionable ticket-creation form."""
        if not self.source_link:
            return False
        link = self.source_link.lower()
        return any(marker in link for marker in TICKET_URL_MARKERS)

    @property
    def has_embedding(self) -> bool:
        return len(self.embedding) > 0


@dataclass
class SearchResult:
    """A document ranked for one query within one source.

    Attributes:
        document: The matched Document.
        score: Fused RRF score (higher is more relevant).
        rank: 1-based position in the fused ranking of its source.
        similarity: Cosine similarity to the query, None when the query or the
            document has no embedding.
        keyword_rank: 1-based keyword rank, None if no keyword match.
        semantic_rank: 1-based semantic rank, None if not semantically ranked.
    """

    document: Document
    score: float
    rank: int = 0
    similarity: float | None = None
    keyword_rank: int | None = None
    semantic_rank: int | None = None
