"""Retrieval exceptions for the operations assistant."""

from .base import OpsAssistantError


class RetrievalError(OpsAssistantError):
    """Error during document retrieval."""

    error_code = "OPS_RET_001"


class SourceUnavailableError(RetrievalError):
    """A document source failed while being searched."""

    error_code = "OPS_RET_002"


class SourceTimeoutError(SourceUnavailableError):
    """A document source did not answer within the configured timeout."""

    error_code = "OPS_RET_003"
