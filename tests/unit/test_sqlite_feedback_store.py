"""Unit tests for SQLiteFeedbackStore and the corrections source."""

import sqlite3
from dataclasses import replace

import pytest

from ops_assistant.adapters.outbound.feedback import CorrectionSource, SQLiteFeedbackStore
from ops_assistant.core.domain import FeedbackRecord, SourceKind

pytestmark = pytest.mark.unit


def make_record(**overrides):
    values = {
        "query": "¿Cómo me conecto desde casa?",
        "response": "Instala Zscaler",
        "intent": "how_to",
        "domain": "Network",
        "best_score": 0.82,
        "was_low_confidence": False,
        "sources_used": ("wiki-zscaler", "form-network"),
        "extracted_keywords": ("casa", "conecto"),
    }
    values.update(overrides)
    return FeedbackRecord(**values)


def test_init_db(tmp_path):
    """Test database initialization and schema creation."""
    db_file = tmp_path / "nested" / "feedback.db"
    SQLiteFeedbackStore(db_file)

    with sqlite3.connect(db_file) as conn:
        result = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='feedback'"
        ).fetchone()
    assert result == ("feedback",)


def test_record_and_get_round_trip(tmp_path):
    store = SQLiteFeedbackStore(tmp_path / "feedback.db")
    record = make_record()

    store.record(record)

    assert store.get(record.id) == record


def test_get_unknown_id(tmp_path):
    assert SQLiteFeedbackStore(tmp_path / "feedback.db").get("missing") is None


def test_rating_replaces_the_original_row(tmp_path):
    """Recording the same id again attaches the rating to the same row."""
    store = SQLiteFeedbackStore(tmp_path / "feedback.db")
    record = make_record()
    store.record(record)

    store.record(replace(record, is_helpful=False, comment="incompleto"))

    stored = store.get(record.id)
    assert stored.is_helpful is False
    assert stored.comment == "incompleto"
    assert store.stats()["total"] == 1


def test_list_corrections_newest_first(tmp_path):
    store = SQLiteFeedbackStore(tmp_path / "feedback.db")
    older = make_record(timestamp="2026-01-01T10:00:00+00:00", correction="Usa ZCC")
    newer = make_record(timestamp="2026-02-01T10:00:00+00:00", correction="Reinicia Zscaler")
    store.record(older)
    store.record(newer)
    store.record(make_record(correction=""))
    store.record(make_record())

    corrections = store.list_corrections()

    assert [r.id for r in corrections] == [newer.id, older.id]


def test_stats(tmp_path):
    store = SQLiteFeedbackStore(tmp_path / "feedback.db")
    store.record(make_record(is_helpful=True))
    store.record(make_record(is_helpful=False, correction="Otra respuesta"))
    store.record(make_record(was_low_confidence=True))

    stats = store.stats()

    assert stats == {
        "total": 3,
        "rated": 2,
        "helpful": 1,
        "not_helpful": 1,
        "satisfaction_rate": 0.5,
        "low_confidence": 1,
        "corrections": 1,
    }


def test_stats_on_empty_store(tmp_path):
    stats = SQLiteFeedbackStore(tmp_path / "feedback.db").stats()
    assert stats["total"] == 0
    assert stats["satisfaction_rate"] == 0.0


class TestCorrectionSource:
    @pytest.mark.asyncio
    async def test_corrections_become_documents(self, tmp_path):
        store = SQLiteFeedbackStore(tmp_path / "feedback.db")
        record = make_record(correction="Abre Zscaler Client Connector y pulsa Reconnect")
        store.record(record)
        store.record(make_record())

        source = CorrectionSource(store)
        documents = await source.list_all()

        assert source.kind is SourceKind.CORRECTION
        assert len(documents) == 1
        doc = documents[0]
        assert doc.id == f"correction-{record.id}"
        assert doc.title == record.query
        assert doc.content == "Abre Zscaler Client Connector y pulsa Reconnect"
        assert doc.keywords == ("casa", "conecto")
        assert doc.category == "Network"
        assert not doc.is_ticket
