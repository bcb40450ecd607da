"""Rule-based intent and domain classification with an LLM fallback router."""

import asyncio
import logging
import re

from ..domain import (
    DOMAIN_PROFILES,
    ChatMessage,
    QueryClassification,
    QueryDomain,
    QueryIntent,
    RoutingMethod,
)
from ..domain.text_analysis import contains_keyword, normalize_for_search
from ..ports.llm_port import ChatCompletionPort
from .prompts import CLARIFICATIONS, DEFAULT_CLARIFICATION, ROUTER_PROMPT, ClarificationTemplate

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"[\s,?¿!¡.:;\"'()]+")

# Checked in order; first intent with a matching phrase wins.
INTENT_RULES: tuple[tuple[QueryIntent, tuple[str, ...]], ...] = (
    (
        QueryIntent.TICKET_REQUEST,
        (
            "abrir ticket", "abrir un ticket", "abre un ticket", "abre ticket", "crear ticket",
            "crear un ticket", "open ticket", "open a ticket", "new ticket", "solicitar ticket",
            "crear solicitud", "formulario", "form",
        ),
    ),
    (
        QueryIntent.HOW_TO,
        ("como", "how", "pasos", "steps", "proceso", "procedimiento", "procedure", "tutorial"),
    ),
    (
        QueryIntent.LOOKUP,
        ("que es", "what is", "que centro", "que planta", "que compania", "which plant"),
    ),
    (
        QueryIntent.TROUBLESHOOTING,
        (
            "error", "problema", "problem", "no funciona", "not working", "falla", "fallo",
            "ayuda", "help", "issue",
        ),
    ),
)

# Tokens specific enough that a one or two word question can still be searched.
SPECIFIC_KEYWORDS = frozenset(
    {
        "sap", "fiori", "sapgui", "zscaler", "vpn", "proxy", "firewall", "wifi", "teamcenter",
        "catia", "windchill", "edi", "edifact", "seeburger", "mes", "scada", "outlook", "teams",
        "sharepoint", "onedrive", "o365", "impresora", "printer", "laptop", "vmware", "bitlocker",
        "mfa", "phishing", "password", "contrasena", "jira", "confluence",
    }
)

_ENGLISH_MARKERS = ("help", "issue", "problem", "please", "not working", "how", "what")
_SPANISH_MARKERS = ("ayuda", "fallo", "problema", "por favor", "como", "que", "no funciona")

HISTORY_TURNS_FOR_ROUTING = 4


class IntentClassifier:
    """Classifies questions into an intent and a domain.

    Domain routing walks the domain table in priority order; only when no
    keyword or code pattern fires does it ask the chat model, with a strict
    timeout and GENERAL as the answer to any failure.
    """

    def __init__(
        self,
        llm: ChatCompletionPort | None = None,
        *,
        ambiguity_min_chars: int = 15,
        ambiguity_max_tokens: int = 2,
        router_timeout: float = 5.0,
        llm_routing_enabled: bool = True,
    ) -> None:
        """Initialize the classifier.

        Args:
            llm: Chat model used as the last routing step (optional).
            ambiguity_min_chars: Queries shorter than this are ambiguous.
            ambiguity_max_tokens: Queries with at most this many tokens are
                ambiguous unless one token is specific enough.
            router_timeout: Seconds to wait for the LLM router.
            llm_routing_enabled: Whether to use the LLM router at all.
        """
        self.llm = llm
        self.ambiguity_min_chars = ambiguity_min_chars
        self.ambiguity_max_tokens = ambiguity_max_tokens
        self.router_timeout = router_timeout
        self.llm_routing_enabled = llm_routing_enabled

    def detect_intent(self, query: str) -> QueryIntent:
        normalized = normalize_for_search(query)
        for intent, phrases in INTENT_RULES:
            if any(contains_keyword(normalized, phrase) for phrase in phrases):
                return intent
        return QueryIntent.GENERAL

    def route_by_rules(self, text: str) -> QueryDomain | None:
        """Route text to a domain by keywords and code patterns, or None."""
        normalized = normalize_for_search(text)
        tokens = [t for t in _TOKEN_SPLIT.split(text) if t]
        for profile in DOMAIN_PROFILES:
            if profile.matches_keywords(normalized) or profile.matches_code(tokens):
                return profile.domain
        return None

    def is_ambiguous(self, query: str, history: list[ChatMessage] | None = None) -> bool:
        """Whether a query is too vague to be worth searching.

        A follow-up in an ongoing conversation is never ambiguous: the
        earlier turns carry the missing detail.
        """
        if history:
            return False

        trimmed = query.strip()
        if len(trimmed) < self.ambiguity_min_chars:
            logger.info(f"Ambiguous query: {len(trimmed)} chars (min {self.ambiguity_min_chars})")
            return True

        tokens = trimmed.split()
        if len(tokens) <= self.ambiguity_max_tokens:
            cleaned = {normalize_for_search(t).strip("?¿!¡,.:;\"'()") for t in tokens}
            if not cleaned & SPECIFIC_KEYWORDS:
                logger.info(f"Ambiguous query: {len(tokens)} tokens, none specific")
                return True

        return False

    def clarification_for(self, query: str) -> tuple[QueryDomain, str]:
        """Pick the clarification prompt matching the hints in a vague query.

        Returns:
            The domain the hint points at and the clarification text, in
            English only when the query reads as English.
        """
        normalized = normalize_for_search(query)
        template: ClarificationTemplate = DEFAULT_CLARIFICATION
        for candidate in CLARIFICATIONS:
            if any(contains_keyword(normalized, hint) for hint in candidate.hints):
                template = candidate
                break

        is_english = any(contains_keyword(normalized, m) for m in _ENGLISH_MARKERS) and not any(
            contains_keyword(normalized, m) for m in _SPANISH_MARKERS
        )
        return template.domain, template.english if is_english else template.spanish

    async def classify(
        self, query: str, history: list[ChatMessage] | None = None
    ) -> QueryClassification:
        """Classify a query into intent and domain.

        Args:
            query: User's question.
            history: Prior conversation turns, used when the question alone
                does not name a domain.

        Returns:
            QueryClassification with the routing method that decided the domain.
        """
        intent = self.detect_intent(query)

        domain = self.route_by_rules(query)
        if domain is not None:
            logger.debug(f"Domain {domain.value} selected by keyword rules")
            return QueryClassification(intent, domain, RoutingMethod.KEYWORD)

        if history:
            recent = " ".join(m.content for m in history[-HISTORY_TURNS_FOR_ROUTING:])
            domain = self.route_by_rules(recent)
            if domain is not None:
                logger.info(f"Context-aware routing: {domain.value} (from conversation history)")
                return QueryClassification(intent, domain, RoutingMethod.HISTORY)

        if self.llm is not None and self.llm_routing_enabled:
            domain = await self._route_with_llm(query)
            return QueryClassification(intent, domain, RoutingMethod.LLM)

        return QueryClassification(intent, QueryDomain.GENERAL, RoutingMethod.DEFAULT)

    async def _route_with_llm(self, query: str) -> QueryDomain:
        """Ask the chat model for a one-word domain, GENERAL on any failure."""
        try:
            reply = await asyncio.wait_for(
                self.llm.complete(ROUTER_PROMPT, "", [ChatMessage(role="user", content=query)]),
                timeout=self.router_timeout,
            )
        except Exception as e:
            logger.warning(f"LLM classification failed, defaulting to General: {e}")
            return QueryDomain.GENERAL

        words = re.findall(r"[A-Za-z]+", reply or "")
        label = words[0].upper() if words else ""
        domain = QueryDomain.__members__.get(label, QueryDomain.GENERAL)
        logger.info(f"LLM router fallback: classified as {domain.value}")
        return domain
