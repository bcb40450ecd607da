"""Assembled context handed to the chat model."""

from dataclasses import dataclass, field

from .document import Document, SourceKind

TIER_HEADERS: dict[SourceKind, str] = {
    SourceKind.HARVESTED: "=== VALIDATED SOLUTIONS FROM RESOLVED TICKETS (prefer these) ===",
    SourceKind.CORRECTION: "=== CORRECTIONS SUBMITTED BY USERS ===",
    SourceKind.CONTEXT: "=== TICKET FORMS AND REFERENCE DATA ===",
    SourceKind.WIKI: "=== WIKI DOCUMENTATION ===",
    SourceKind.KNOWLEDGE_BASE: "=== KNOWLEDGE BASE ARTICLES ===",
}

TIER_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class ContextItem:
    """One piece of evidence placed in the context block.

    Attributes:
        tier: Source the document came from, which fixes its position.
        document: The document itself.
        score: Intent-weighted fused score used for ordering within a tier.
    """

    tier: SourceKind
    document: Document
    score: float


@dataclass
class ContextBlock:
    """Ordered, size-bounded evidence for one question.

    ``sources_used`` lists the ids of every document in ``items`` in the same
    order; feedback learning relies on it to know what backed an answer.
    """

    items: list[ContextItem] = field(default_factory=list)
    sources_used: list[str] = field(default_factory=list)
    max_item_chars: int = 1500

    @property
    def is_empty(self) -> bool:
        return not self.items

    def items_in(self, tier: SourceKind) -> list[ContextItem]:
        return [item for item in self.items if item.tier is tier]

    def best_ticket(self) -> Document | None:
        """Highest ranked ticket-creation form in the block, if any."""
        tickets = [item for item in self.items if item.document.is_ticket]
        if not tickets:
            return None
        return max(tickets, key=lambda item: item.score).document

    def render_item(self, item: ContextItem) -> str:
        """Prompt text for one item: title, link when present and capped content."""
        doc = item.document
        lines = [f"\n[{doc.title}]"]
        if doc.source_link:
            lines.append(f"Link: {doc.source_link}")
        lines.append(doc.content[: self.max_item_chars])
        return "\n".join(lines)

    def render(self) -> str:
        """Format the block as prompt text, tier by tier."""
        if not self.items:
            return "No relevant documentation was found for this question."

        sections: list[list[str]] = []
        current_tier: SourceKind | None = None
        for item in self.items:
            if item.tier is not current_tier:
                sections.append([TIER_HEADERS[item.tier]])
                current_tier = item.tier
            sections[-1].append(self.render_item(item))
        return TIER_SEPARATOR.join("\n".join(section) for section in sections)
