"""Port definition for the feedback subsystem."""

from typing import Protocol

from ..domain import FeedbackRecord


class FeedbackSinkPort(Protocol):
    """Receives one structured record per answered question."""

    def record(self, feedback: FeedbackRecord) -> None:
        """Persist or forward a feedback record.

        Recording the same record id again replaces the earlier version,
        which is how user ratings are attached after the fact.
        """
        ...
