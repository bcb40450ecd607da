"""Merges per-source results into one ordered, bounded context block."""

import logging
from collections.abc import Iterable, Mapping

from ..domain import (
    ContextBlock,
    ContextItem,
    QueryIntent,
    SearchResult,
    SourceKind,
    weights_for,
)
from ..domain.context import TIER_HEADERS, TIER_SEPARATOR
from ..domain.text_analysis import normalize_for_search

logger = logging.getLogger(__name__)

# Fixed tier order, independent of scores
TIER_ORDER: tuple[SourceKind, ...] = tuple(sorted(SourceKind, key=lambda kind: kind.priority))


def _title_key(title: str) -> str:
    return " ".join(normalize_for_search(title).split())


class ContextAssembler:
    """Builds the evidence block for the chat model.

    Tiers are emitted in a fixed order (harvested solutions, user
    corrections, context documents, wiki, knowledge base) because the model
    weighs early context more heavily. Inside a tier, results are ordered by
    their intent-weighted fused score.
    """

    def __init__(
        self,
        max_items_per_tier: int = 5,
        max_context_chars: int = 12000,
        max_item_chars: int = 1500,
    ) -> None:
        self.max_items_per_tier = max_items_per_tier
        self.max_context_chars = max_context_chars
        self.max_item_chars = max_item_chars

    def assemble(
        self,
        per_source_results: Mapping[SourceKind, Iterable[SearchResult]],
        intent: QueryIntent,
        excluded_ticket_categories: Iterable[str] = (),
    ) -> ContextBlock:
        """Assemble the context block for one question.

        Args:
            per_source_results: Fused results keyed by the source they came from.
            intent: Detected intent, selecting the weight row.
            excluded_ticket_categories: Ticket-form categories the current
                domain must not suggest.

        Returns:
            ContextBlock with tier-ordered items and the ids of the documents used.
        """
        weights = weights_for(intent)
        excluded = {c.lower() for c in excluded_ticket_categories}

        tiers: list[list[ContextItem]] = []
        for kind in TIER_ORDER:
            items = []
            for result in per_source_results.get(kind, ()):
                doc = result.document
                if doc.is_ticket and doc.category and doc.category.lower() in excluded:
                    continue
                items.append(ContextItem(kind, doc, result.score * weights.for_result(kind, doc)))
            items.sort(key=lambda item: (-item.score, item.document.id))
            tiers.append(items)

        deduplicated = self._deduplicate(tiers)
        truncated = [tier[: self.max_items_per_tier] for tier in deduplicated]
        items = self._apply_char_budget(truncated)

        block = ContextBlock(
            items=items,
            sources_used=[item.document.id for item in items],
            max_item_chars=self.max_item_chars,
        )
        logger.info(
            "Context assembled: "
            + ", ".join(f"{kind.value}={len(block.items_in(kind))}" for kind in TIER_ORDER)
        )
        return block

    @staticmethod
    def _deduplicate(tiers: list[list[ContextItem]]) -> list[list[ContextItem]]:
        """Keep only the highest-priority occurrence of each logical document."""
        seen_ids: set[str] = set()
        seen_titles: set[str] = set()
        result = []
        for tier in tiers:
            kept = []
            for item in tier:
                title = _title_key(item.document.title)
                if item.document.id in seen_ids or (title and title in seen_titles):
                    continue
                seen_ids.add(item.document.id)
                if title:
                    seen_titles.add(title)
                kept.append(item)
            result.append(kept)
        return result

    def _apply_char_budget(self, tiers: list[list[ContextItem]]) -> list[ContextItem]:
        """Flatten tiers in priority order until the character budget is spent.

        Items are measured exactly as ``ContextBlock.render`` prints them,
        tier headers and links included. Once an item does not fit, it and
        everything after it (lower priority) is dropped.
        """
        renderer = ContextBlock(max_item_chars=self.max_item_chars)
        items: list[ContextItem] = []
        used = 0
        for tier in tiers:
            for index, item in enumerate(tier):
                size = 1 + len(renderer.render_item(item))
                if index == 0:
                    size += len(TIER_HEADERS[item.tier]) + (len(TIER_SEPARATOR) if items else 0)
                if used + size > self.max_context_chars:
                    dropped = sum(len(t) for t in tiers) - len(items)
                    logger.info(f"Context budget reached, dropped {dropped} lower-priority items")
                    return items
                items.append(item)
                used += size
        return items
