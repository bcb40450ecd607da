"""Operations assistant - question answering orchestration.

One call to ``AgentService.ask`` walks the whole pipeline:

    validate -> ambiguity check -> exact cache -> embed -> semantic cache
    -> classify -> expand -> concurrent source search -> assemble context
    -> low-confidence escalation or chat completion -> cache -> feedback

Nothing raised below ``ask`` reaches the caller; every failure ends as an
``AgentResponse`` with ``success=False`` and an error code.
"""

import asyncio
import logging
import time
from collections.abc import Coroutine, Mapping, Sequence
from dataclasses import replace
from typing import Any, TypeVar

from ..domain import (
    AgentResponse,
    CacheEntry,
    ChatMessage,
    ContextBlock,
    DomainProfile,
    FeedbackRecord,
    QueryDomain,
    QueryIntent,
    RetrievalQuery,
    SearchResult,
    SourceKind,
    profile_for,
)
from ..domain.exceptions import (
    EmbeddingAPIError,
    EmbeddingError,
    EmbeddingTimeoutError,
    EmptyQueryError,
    LLMConnectionError,
    LLMError,
    LLMGenerationError,
    LLMTimeoutError,
    QueryTooLongError,
    RequestCancelledError,
    ValidationError,
)
from ..domain.text_analysis import detect_system, extract_search_terms
from ...common.exception_handler import get_error_code, is_retryable, log_exception
from ...common.utils import clean_text, truncate_text
from .context_assembler import ContextAssembler
from .hybrid_retriever import HybridRetriever
from .intent_classifier import IntentClassifier
from .prompts import (
    CANCELLED_RESPONSE,
    EMPTY_QUERY_RESPONSE,
    GENERAL_TICKET_LABEL,
    INTENT_GUIDANCE,
    LLM_FAILURE_RESPONSE,
    LOW_CONFIDENCE_RESPONSE,
    QUERY_TOO_LONG_RESPONSE,
    SYSTEM_PROMPT,
)
from .query_expander import QueryExpander
from .retrieval_context import RetrievalContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AgentService:
    """IT operations assistant answering employee questions from the document sources."""

    def __init__(
        self,
        context: RetrievalContext,
        classifier: IntentClassifier | None = None,
        expander: QueryExpander | None = None,
        retriever: HybridRetriever | None = None,
        assembler: ContextAssembler | None = None,
    ) -> None:
        """Initialize the agent.

        Args:
            context: Shared collaborators and configuration.
            classifier: Intent/domain classifier (built from settings if omitted).
            expander: Query expander (default instance if omitted).
            retriever: Hybrid retriever (built from settings if omitted).
            assembler: Context assembler (built from settings if omitted).
        """
        cfg = context.settings
        self.context = context
        self.classifier = classifier or IntentClassifier(
            context.llm,
            ambiguity_min_chars=cfg.ambiguity_min_chars,
            ambiguity_max_tokens=cfg.ambiguity_max_tokens,
            router_timeout=cfg.router_timeout_seconds,
            llm_routing_enabled=cfg.llm_routing_enabled,
        )
        self.expander = expander or QueryExpander()
        self.retriever = retriever or HybridRetriever(
            rrf_k=cfg.rrf_k,
            semantic_min_similarity=cfg.semantic_min_similarity,
            parallel_threshold=cfg.parallel_similarity_threshold,
            source_timeout=cfg.source_timeout_seconds,
        )
        self.assembler = assembler or ContextAssembler(
            max_items_per_tier=cfg.max_items_per_tier,
            max_context_chars=cfg.max_context_chars,
            max_item_chars=cfg.max_item_chars,
        )

    async def ask(
        self,
        question: str,
        conversation_history: Sequence[ChatMessage] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AgentResponse:
        """Answer one question.

        Args:
            question: The user's question.
            conversation_history: Prior turns of this conversation, oldest first.
            cancel_event: Set by the caller (e.g. on client disconnect) to
                abandon the request; in-flight work is cancelled and nothing
                is written to the cache.

        Returns:
            AgentResponse. ``success`` is False only when no answer could be
            produced (invalid question, cancellation, chat model failure).
        """
        history = list(conversation_history or [])
        start = time.perf_counter()

        try:
            query = self._validate(question)
        except ValidationError as e:
            log_exception(e, log=logger, level=logging.WARNING)
            answer = QUERY_TOO_LONG_RESPONSE if isinstance(e, QueryTooLongError) else EMPTY_QUERY_RESPONSE
            return AgentResponse(answer=answer, success=False, error_code=e.error_code)

        try:
            response = await self._run_cancellable(
                self._answer(query, history, cancel_event), cancel_event
            )
        except RequestCancelledError as e:
            log_exception(e, log=logger, level=logging.INFO)
            return AgentResponse(answer=CANCELLED_RESPONSE, success=False, error_code=e.error_code)
        except Exception as e:
            log_exception(e, log=logger, extra_context={"query": truncate_text(query, 120)})
            return AgentResponse(
                answer=LLM_FAILURE_RESPONSE, success=False, error_code=get_error_code(e)
            )

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Answered in {elapsed_ms:.0f}ms: domain={response.domain} intent={response.intent} "
            f"cache={response.from_cache} low_confidence={response.low_confidence}"
        )
        return response

    async def submit_feedback(
        self,
        record: FeedbackRecord,
        is_helpful: bool,
        comment: str | None = None,
        correction: str | None = None,
    ) -> FeedbackRecord:
        """Attach the user's rating to an earlier answer and re-record it.

        A correction, once stored, is served back through the corrections
        source on later questions.
        """
        updated = replace(
            record,
            is_helpful=is_helpful,
            comment=clean_text(comment).strip() or None if comment else None,
            correction=clean_text(correction).strip() or None if correction else None,
        )
        sink = self.context.feedback_sink
        if sink is None:
            logger.warning("Feedback submitted but no feedback sink is configured")
            return updated
        await asyncio.to_thread(sink.record, updated)
        logger.info(f"Feedback recorded for {updated.id}: helpful={is_helpful}")
        return updated

    def build_system_prompt(self, profile: DomainProfile, intent: QueryIntent) -> str:
        """Base instructions plus the domain addendum and the intent guidance."""
        parts = [SYSTEM_PROMPT.strip()]
        if profile.prompt:
            parts.append(f"## Domain\n{profile.prompt}")
        guidance = INTENT_GUIDANCE.get(intent, "")
        if guidance:
            parts.append(f"## Query type\n{guidance}")
        return "\n\n".join(parts)

    def _validate(self, question: str | None) -> str:
        query = clean_text(question or "").strip()
        if not query:
            raise EmptyQueryError("Question is empty or whitespace only")
        max_length = self.context.settings.max_query_length
        if len(query) > max_length:
            raise QueryTooLongError(
                "Question exceeds the maximum length",
                context={"length": len(query), "max_length": max_length},
            )
        return query

    async def _answer(
        self,
        query: str,
        history: list[ChatMessage],
        cancel_event: asyncio.Event | None,
    ) -> AgentResponse:
        cfg = self.context.settings

        if self.classifier.is_ambiguous(query, history):
            domain, clarification = self.classifier.clarification_for(query)
            return AgentResponse(
                answer=clarification, domain=domain.value, needs_clarification=True
            )

        # Follow-ups depend on earlier turns, so only single-turn questions are cached
        cache = self.context.cache if cfg.cache_enabled and not history else None

        if cache is not None:
            entry = cache.get_exact(query)
            if entry is not None:
                return await self._cached_response(query, entry, confidence=1.0)

        embedding = await self._embed(query)

        if cache is not None and embedding:
            semantic = cache.get_semantic(embedding)
            if semantic is not None:
                entry, similarity = semantic
                return await self._cached_response(query, entry, confidence=similarity)

        classification = await self.classifier.classify(query, history)
        profile = profile_for(classification.domain)
        logger.info(
            f"Classified as {classification.domain.value}/{classification.intent.value} "
            f"(by {classification.routed_by.value})"
        )

        sub_queries = self.expander.decompose(query)
        retrieval_query = RetrievalQuery(
            text=query,
            expanded=self.expander.expand_with_synonyms(query),
            sub_queries=tuple(sub_queries),
            embedding=tuple(embedding) if embedding else None,
        )

        per_source = await self.retriever.search_all(
            self.context.sources, retrieval_query, cfg.retrieval_top_k
        )
        best_score = self.best_confidence(per_source)
        block = self.assembler.assemble(
            per_source, classification.intent, profile.excluded_ticket_categories
        )

        if best_score < cfg.relevance_threshold:
            logger.warning(
                f"Low confidence ({best_score:.2f} < {cfg.relevance_threshold}), escalating"
            )
            return await self._finish(
                query,
                self._escalation_answer(block),
                domain=classification.domain,
                intent=classification.intent,
                best_score=best_score,
                sources_used=block.sources_used,
                low_confidence=True,
            )

        messages = [*history, ChatMessage(role="user", content=query)]
        try:
            answer = await self._complete(
                self.build_system_prompt(profile, classification.intent), block.render(), messages
            )
        except LLMError as e:
            log_exception(e, log=logger)
            return AgentResponse(
                answer=LLM_FAILURE_RESPONSE,
                success=False,
                domain=classification.domain.value,
                intent=classification.intent.value,
                sources_used=list(block.sources_used),
                error_code=e.error_code,
            )

        if cache is not None and not (cancel_event and cancel_event.is_set()):
            cache.store(query, answer, block.sources_used, embedding)

        return await self._finish(
            query,
            answer,
            domain=classification.domain,
            intent=classification.intent,
            best_score=best_score,
            sources_used=block.sources_used,
        )

    def best_confidence(self, per_source: Mapping[SourceKind, Sequence[SearchResult]]) -> float:
        """Best retrieval confidence across every source.

        Fused RRF scores are rank based and stay far below any absolute
        threshold, so confidence uses the cosine similarity of each hit. Only a
        hit that could not be compared, because the query or the document has
        no embedding, counts as ``keyword_only_confidence``.
        """
        keyword_only = self.context.settings.keyword_only_confidence
        scores = [
            result.similarity if result.similarity is not None else keyword_only
            for results in per_source.values()
            for result in results
        ]
        return max(scores, default=0.0)

    def _escalation_answer(self, block: ContextBlock) -> str:
        ticket = block.best_ticket()
        if ticket is not None:
            return f"{LOW_CONFIDENCE_RESPONSE}\n\n[{ticket.title}]({ticket.source_link})"
        fallback = self.context.settings.fallback_ticket_url
        if fallback:
            return f"{LOW_CONFIDENCE_RESPONSE}\n\n[{GENERAL_TICKET_LABEL}]({fallback})"
        return LOW_CONFIDENCE_RESPONSE

    async def _cached_response(
        self, query: str, entry: CacheEntry, confidence: float
    ) -> AgentResponse:
        # Cache hits skip the LLM router; rule routing or keyword buckets are enough for reporting
        domain = self.classifier.route_by_rules(query) or detect_system(query)
        return await self._finish(
            query,
            entry.response,
            domain=domain,
            intent=self.classifier.detect_intent(query),
            best_score=confidence,
            sources_used=entry.sources_used,
            from_cache=True,
        )

    async def _finish(
        self,
        query: str,
        answer: str,
        *,
        domain: QueryDomain,
        intent: QueryIntent,
        best_score: float,
        sources_used: Sequence[str],
        low_confidence: bool = False,
        from_cache: bool = False,
    ) -> AgentResponse:
        record = FeedbackRecord(
            query=query,
            response=answer,
            intent=intent.value,
            domain=domain.value,
            best_score=best_score,
            was_low_confidence=low_confidence,
            from_cache=from_cache,
            sources_used=tuple(sources_used),
            extracted_keywords=tuple(sorted(extract_search_terms(query))),
        )
        await self._emit_feedback(record)
        return AgentResponse(
            answer=answer,
            domain=domain.value,
            low_confidence=low_confidence,
            from_cache=from_cache,
            sources_used=list(sources_used),
            intent=intent.value,
            feedback=record,
        )

    async def _emit_feedback(self, record: FeedbackRecord) -> None:
        """Hand the record to the feedback sink; a failing sink never fails the answer."""
        sink = self.context.feedback_sink
        if sink is None:
            return
        try:
            await asyncio.to_thread(sink.record, record)
        except Exception as e:
            log_exception(
                e, log=logger, level=logging.WARNING, extra_context={"feedback_id": record.id}
            )

    async def _embed(self, query: str) -> list[float] | None:
        """Embed the question, or None when the embedding service is unavailable."""
        timeout = self.context.settings.embedding_timeout_seconds
        try:
            embedding = await asyncio.wait_for(self.context.embedder.embed(query), timeout=timeout)
        except TimeoutError as e:
            log_exception(
                EmbeddingTimeoutError(
                    "Embedding timed out, using keyword search only",
                    cause=e,
                    context={"timeout": timeout},
                ),
                log=logger,
                level=logging.WARNING,
            )
            return None
        except Exception as e:
            error = e if isinstance(e, EmbeddingError) else EmbeddingAPIError(
                "Embedding failed, using keyword search only", cause=e
            )
            log_exception(error, log=logger, level=logging.WARNING)
            return None
        return list(embedding) if embedding else None

    async def _complete(
        self, system_prompt: str, context: str, messages: list[ChatMessage]
    ) -> str:
        """Run the chat completion with a per-attempt timeout and bounded retries.

        Only rate limits, connection failures and timeouts are retried, with
        exponential backoff. The inputs are identical on every attempt.
        """
        cfg = self.context.settings
        attempts = max(1, cfg.llm_max_retries)

        for attempt in range(attempts):
            try:
                answer = await asyncio.wait_for(
                    self.context.llm.complete(system_prompt, context, messages),
                    timeout=cfg.llm_timeout_seconds,
                )
            except TimeoutError as e:
                error: LLMError = LLMTimeoutError(
                    "Chat completion timed out", cause=e, context={"timeout": cfg.llm_timeout_seconds}
                )
            except LLMError as e:
                error = e
            except Exception as e:
                if is_retryable(e):
                    error = LLMConnectionError(f"Chat completion failed: {e}", cause=e)
                else:
                    error = LLMError(f"Chat completion failed: {e}", cause=e)
            else:
                cleaned = clean_text(answer or "").strip()
                if cleaned:
                    return cleaned
                error = LLMGenerationError("Chat model returned an empty answer")

            if attempt == attempts - 1 or not is_retryable(error):
                raise error
            delay = cfg.llm_retry_backoff_seconds * 2**attempt
            logger.warning(
                f"Chat completion attempt {attempt + 1}/{attempts} failed "
                f"({error.error_code}), retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)

        raise LLMGenerationError("Chat completion failed")

    @staticmethod
    async def _run_cancellable(
        coro: Coroutine[Any, Any, T], cancel_event: asyncio.Event | None
    ) -> T:
        """Await ``coro`` unless ``cancel_event`` fires first.

        On cancellation the work is cancelled at its next suspension point
        and awaited before RequestCancelledError is raised.
        """
        if cancel_event is None:
            return await coro

        task = asyncio.ensure_future(coro)
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise RequestCancelledError("Request cancelled by the caller")
