"""
Pytest configuration and shared fixtures.
"""

import asyncio

import pytest

from ops_assistant.adapters.outbound.document_sources import InMemoryDocumentSource
from ops_assistant.config import Settings
from ops_assistant.core.domain import ChatMessage, Document, SourceKind
from ops_assistant.core.ports.embedding_port import EmbeddingPort
from ops_assistant.core.ports.llm_port import ChatCompletionPort
from ops_assistant.core.services.prompts import ROUTER_PROMPT


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (require API keys)")
    config.addinivalue_line("markers", "slow: Slow tests (network, large data)")


def make_document(
    doc_id: str,
    title: str = "",
    content: str = "",
    keywords: tuple[str, ...] = (),
    embedding: tuple[float, ...] = (),
    source_link: str | None = None,
    category: str | None = None,
) -> Document:
    """Build a Document with sensible defaults for tests."""
    return Document(
        id=doc_id,
        title=title or doc_id,
        content=content,
        keywords=keywords,
        embedding=embedding,
        source_link=source_link,
        category=category,
    )


def one_hot(index: int, size: int = 8) -> list[float]:
    vector = [0.0] * size
    vector[index] = 1.0
    return vector


class FakeEmbedder(EmbeddingPort):
    """Embedder returning preset vectors; unknown texts get ``default``."""

    def __init__(self, vectors=None, default=None, error=None, delay=0.0):
        self.vectors = dict(vectors or {})
        self.default = default
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    async def embed(self, text):
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if text in self.vectors:
            return list(self.vectors[text])
        return list(self.default) if self.default is not None else []


class FakeChatModel(ChatCompletionPort):
    """Chat model recording every call.

    Router prompts get ``router_reply``; answer prompts pop the next entry of
    ``errors`` (raising it when it is an exception) and otherwise return
    ``answer``.
    """

    def __init__(self, answer="Respuesta generada", router_reply="GENERAL", errors=None, delay=0.0):
        self.answer = answer
        self.router_reply = router_reply
        self.errors = list(errors or [])
        self.delay = delay
        self.calls: list[tuple[str, str, list[ChatMessage]]] = []
        self.router_calls: list[str] = []

    async def complete(self, system_prompt, context, history):
        if system_prompt == ROUTER_PROMPT:
            self.router_calls.append(history[-1].content)
            return self.router_reply
        self.calls.append((system_prompt, context, list(history)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error
        return self.answer


class RecordingSource(InMemoryDocumentSource):
    """In-memory source counting how often it is listed."""

    def __init__(self, kind, documents=(), delay=0.0, error=None):
        super().__init__(kind, documents)
        self.delay = delay
        self.error = error
        self.calls = 0

    async def list_all(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return await super().list_all()


class RecordingSink:
    """Feedback sink keeping records in a dict keyed by id."""

    def __init__(self):
        self.records = {}
        self.calls = 0

    def record(self, feedback):
        self.calls += 1
        self.records[feedback.id] = feedback


@pytest.fixture
def test_settings(tmp_path):
    """Settings isolated from any .env file, with no retry backoff."""
    return Settings(
        _env_file=None,
        google_api_key="test-key",
        data_dir=tmp_path / "data",
        feedback_db_path=tmp_path / "data" / "feedback.db",
        llm_retry_backoff_seconds=0.0,
        llm_routing_enabled=True,
    )


@pytest.fixture
def network_documents():
    """Documents for the remote access scenario across three sources."""
    return {
        SourceKind.WIKI: [
            make_document(
                "wiki-zscaler",
                title="Zscaler VPN remote access guide",
                content="Instala Zscaler Client Connector para el acceso remoto desde casa.",
                keywords=("zscaler", "vpn", "remote access"),
            ),
        ],
        SourceKind.CONTEXT: [
            make_document(
                "form-network",
                title="Zscaler remote access request",
                content="Ticket form for Zscaler VPN remote access problems.",
                keywords=("zscaler", "remote access"),
                source_link="https://acme.atlassian.net/servicedesk/customer/portal/3/create/40",
                category="Network",
            ),
            make_document(
                "form-sap",
                title="SAP remote access request",
                content="Ticket form for SAP remote access via Zscaler.",
                keywords=("sap", "remote access"),
                source_link="https://acme.atlassian.net/servicedesk/customer/portal/3/create/12",
                category="SAP",
            ),
        ],
        SourceKind.KNOWLEDGE_BASE: [
            make_document(
                "kb-general",
                title="General remote access article",
                content="Generic article about remote access and Zscaler VPN.",
                keywords=("remote access",),
            ),
        ],
    }
