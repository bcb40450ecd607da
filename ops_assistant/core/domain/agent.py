"""Agent-related models for conversation turns, responses and feedback."""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True)
class ChatMessage:
    """A single message in the chat history."""

    role: str
    content: str


@dataclass(frozen=True)
class FeedbackRecord:
    """Structured record of one answered question for the feedback subsystem.

    Attributes:
        query: The question as asked.
        response: The answer returned to the user.
        intent: Detected intent value.
        domain: Detected domain label.
        best_score: Best retrieval confidence across all sources.
        was_low_confidence: Whether the answer was an escalation.
        from_cache: Whether the answer was served from cache.
        sources_used: Ids of the documents that backed the answer.
        extracted_keywords: Search terms extracted from the question.
        is_helpful: User rating, None until the user rates the answer.
        comment: Optional free-text comment from the user.
        correction: Optional corrected answer supplied by the user.
    """

    query: str
    response: str
    intent: str
    domain: str
    best_score: float
    was_low_confidence: bool
    from_cache: bool = False
    sources_used: tuple[str, ...] = ()
    extracted_keywords: tuple[str, ...] = ()
    is_helpful: bool | None = None
    comment: str | None = None
    correction: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


@dataclass
class AgentResponse:
    """Response returned by ``AgentService.ask``.

    Attributes:
        answer: Answer, clarification, escalation or error text.
        success: False only when the answer could not be produced.
        domain: Detected domain label.
        low_confidence: True when retrieval found nothing relevant enough.
        from_cache: True when served from the exact or semantic cache.
        sources_used: Ids of the documents that backed the answer.
        intent: Detected intent value.
        needs_clarification: True when the question was too vague to search.
        error_code: Error code when ``success`` is False.
        feedback: Record emitted to the feedback sink for this answer.
    """

    answer: str
    success: bool = True
    domain: str = "General"
    low_confidence: bool = False
    from_cache: bool = False
    sources_used: list[str] = field(default_factory=list)
    intent: str = "general"
    needs_clarification: bool = False
    error_code: str | None = None
    feedback: FeedbackRecord | None = None
