"""Unit tests for the command line interface with a stubbed agent."""

import asyncio
import logging

import pytest
from typer.testing import CliRunner

from ops_assistant.core.domain import AgentResponse, FeedbackRecord
from ops_assistant.interface import cli

pytestmark = pytest.mark.unit

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI callback reconfigures the package logger; undo it after each test."""
    logger = logging.getLogger("ops_assistant")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


class StubAgent:
    def __init__(self, response):
        self.response = response
        self.questions = []
        self.feedback = []

    async def ask(self, question, conversation_history=None, cancel_event=None):
        self.questions.append((question, list(conversation_history or [])))
        return self.response

    async def submit_feedback(self, record, is_helpful, comment=None, correction=None):
        self.feedback.append((is_helpful, comment, correction))
        return record


def answered(answer="Instala Zscaler", success=True):
    record = FeedbackRecord(
        query="q", response=answer, intent="how_to", domain="Network",
        best_score=0.8, was_low_confidence=False,
    )
    return AgentResponse(
        answer=answer,
        success=success,
        domain="Network",
        intent="how_to",
        sources_used=["wiki-zscaler"],
        error_code=None if success else "OPS_LLM_003",
        feedback=record,
    )


def test_ask_prints_answer_and_sources(monkeypatch):
    agent = StubAgent(answered())
    monkeypatch.setattr(cli, "get_agent", lambda: agent)

    result = runner.invoke(cli.app, ["ask", "¿Cómo me conecto desde casa?"])

    assert result.exit_code == 0
    assert "Instala Zscaler" in result.output
    assert "wiki-zscaler" in result.output
    assert agent.questions == [("¿Cómo me conecto desde casa?", [])]


def test_ask_failure_exits_non_zero(monkeypatch):
    monkeypatch.setattr(cli, "get_agent", lambda: StubAgent(answered("Error", success=False)))

    result = runner.invoke(cli.app, ["ask", "¿Cómo me conecto desde casa?"])

    assert result.exit_code == 1
    assert "OPS_LLM_003" in result.output


def test_chat_loop_keeps_history_and_sends_feedback(monkeypatch):
    agent = StubAgent(answered())
    inputs = iter(["Mi Zscaler no conecta", "/bad incompleto", "Estoy en casa", "/new", "quit"])
    monkeypatch.setattr(cli.Prompt, "ask", lambda *args, **kwargs: next(inputs))

    asyncio.run(cli._chat_loop(agent))

    assert [q for q, _ in agent.questions] == ["Mi Zscaler no conecta", "Estoy en casa"]
    assert [m.content for m in agent.questions[1][1]] == ["Mi Zscaler no conecta", "Instala Zscaler"]
    assert agent.feedback == [(False, "incompleto", None)]


def test_missing_api_key_exits(monkeypatch):
    monkeypatch.setattr(cli.settings, "google_api_key", "")
    result = runner.invoke(cli.app, ["ask", "hola"])
    assert result.exit_code == 1
    assert "GOOGLE_API_KEY" in result.output
