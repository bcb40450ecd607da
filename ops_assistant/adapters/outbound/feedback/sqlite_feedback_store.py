"""SQLite adapter persisting answer feedback and serving user corrections."""

import asyncio
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from ....core.domain import Document, FeedbackRecord, SourceKind
from ....core.ports.document_source_port import DocumentSourcePort

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "timestamp",
    "query",
    "response",
    "intent",
    "domain",
    "best_score",
    "was_low_confidence",
    "from_cache",
    "sources_used",
    "extracted_keywords",
    "is_helpful",
    "comment",
    "correction",
)


class SQLiteFeedbackStore:
    """Feedback sink storing one row per answered question.

    Recording a record whose id already exists replaces the row, which is
    how a later rating or correction is attached to the original answer.
    """

    def __init__(self, db_path: str | Path = "data/feedback.db") -> None:
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_db()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _init_db(self) -> None:
        """Initialize the database schema."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS feedback (
                        id TEXT PRIMARY KEY,
                        timestamp TEXT NOT NULL,
                        query TEXT NOT NULL,
                        response TEXT NOT NULL,
                        intent TEXT,
                        domain TEXT,
                        best_score REAL,
                        was_low_confidence INTEGER NOT NULL DEFAULT 0,
                        from_cache INTEGER NOT NULL DEFAULT 0,
                        sources_used TEXT,
                        extracted_keywords TEXT,
                        is_helpful INTEGER,
                        comment TEXT,
                        correction TEXT
                    )
                """)

                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_feedback_domain
                    ON feedback(domain)
                """)

                conn.commit()

        except sqlite3.Error as e:
            logger.error(f"Failed to initialize feedback database: {e}")
            raise

    def record(self, feedback: FeedbackRecord) -> None:
        """Insert or replace a feedback record."""
        row = (
            feedback.id,
            feedback.timestamp,
            feedback.query,
            feedback.response,
            feedback.intent,
            feedback.domain,
            feedback.best_score,
            int(feedback.was_low_confidence),
            int(feedback.from_cache),
            json.dumps(list(feedback.sources_used), ensure_ascii=False),
            json.dumps(list(feedback.extracted_keywords), ensure_ascii=False),
            None if feedback.is_helpful is None else int(feedback.is_helpful),
            feedback.comment,
            feedback.correction,
        )
        placeholders = ", ".join("?" for _ in _COLUMNS)
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO feedback ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                row,
            )
            conn.commit()
        logger.debug(f"Feedback {feedback.id} stored")

    def get(self, record_id: str) -> FeedbackRecord | None:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM feedback WHERE id = ?", (record_id,)
            ).fetchone()
        return self._to_record(row) if row else None

    def list_corrections(self) -> list[FeedbackRecord]:
        """Records carrying a user correction, newest first."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM feedback "
                "WHERE correction IS NOT NULL AND correction != '' "
                "ORDER BY timestamp DESC"
            ).fetchall()
        return [self._to_record(row) for row in rows]

    def stats(self) -> dict[str, Any]:
        """Totals, satisfaction rate and low-confidence count."""
        with sqlite3.connect(self.db_path) as conn:
            total, rated, helpful, low_confidence, corrections = conn.execute("""
                SELECT
                    COUNT(*),
                    COUNT(is_helpful),
                    COALESCE(SUM(CASE WHEN is_helpful = 1 THEN 1 ELSE 0 END), 0),
                    COALESCE(SUM(was_low_confidence), 0),
                    COALESCE(SUM(CASE WHEN correction IS NOT NULL AND correction != ''
                        THEN 1 ELSE 0 END), 0)
                FROM feedback
            """).fetchone()
        return {
            "total": total,
            "rated": rated,
            "helpful": helpful,
            "not_helpful": rated - helpful,
            "satisfaction_rate": helpful / rated if rated else 0.0,
            "low_confidence": low_confidence,
            "corrections": corrections,
        }

    @staticmethod
    def _to_record(row: tuple[Any, ...]) -> FeedbackRecord:
        values = dict(zip(_COLUMNS, row, strict=True))
        return FeedbackRecord(
            id=values["id"],
            timestamp=values["timestamp"],
            query=values["query"],
            response=values["response"],
            intent=values["intent"] or "general",
            domain=values["domain"] or "General",
            best_score=float(values["best_score"] or 0.0),
            was_low_confidence=bool(values["was_low_confidence"]),
            from_cache=bool(values["from_cache"]),
            sources_used=tuple(json.loads(values["sources_used"] or "[]")),
            extracted_keywords=tuple(json.loads(values["extracted_keywords"] or "[]")),
            is_helpful=None if values["is_helpful"] is None else bool(values["is_helpful"]),
            comment=values["comment"],
            correction=values["correction"],
        )


class CorrectionSource(DocumentSourcePort):
    """User corrections served back as the correction tier of the context."""

    kind = SourceKind.CORRECTION

    def __init__(self, store: SQLiteFeedbackStore) -> None:
        self.store = store

    async def list_all(self) -> list[Document]:
        records = await asyncio.to_thread(self.store.list_corrections)
        return [
            Document(
                id=f"correction-{record.id}",
                title=record.query,
                content=record.correction or "",
                keywords=record.extracted_keywords,
                category=record.domain,
            )
            for record in records
        ]
