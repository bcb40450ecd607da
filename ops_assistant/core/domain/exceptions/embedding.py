"""Embedding exceptions for the operations assistant."""

from .base import OpsAssistantError


class EmbeddingError(OpsAssistantError):
    """Failed to generate embeddings."""

    error_code = "OPS_EMB_001"


class EmbeddingAPIError(EmbeddingError):
    """Embedding API returned an error."""

    error_code = "OPS_EMB_002"


class EmbeddingTimeoutError(EmbeddingError):
    """Embedding API did not answer within the configured timeout."""

    error_code = "OPS_EMB_003"
