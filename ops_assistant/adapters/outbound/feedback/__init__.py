"""Feedback persistence adapters."""

from .sqlite_feedback_store import CorrectionSource, SQLiteFeedbackStore

__all__ = ["CorrectionSource", "SQLiteFeedbackStore"]
