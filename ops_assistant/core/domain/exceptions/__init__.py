"""Custom exception hierarchy for the operations assistant.

All exceptions derive from OpsAssistantError and are re-exported here:

    from ops_assistant.core.domain.exceptions import OpsAssistantError, SourceTimeoutError
"""

# Base classes
from .base import ExceptionContext, OpsAssistantError

# Configuration exceptions
from .configuration import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingAPIKeyError,
)

# Embedding exceptions
from .embedding import (
    EmbeddingAPIError,
    EmbeddingError,
    EmbeddingTimeoutError,
)

# Chat completion exceptions
from .llm import (
    LLMConnectionError,
    LLMError,
    LLMGenerationError,
    LLMRateLimitError,
    LLMTimeoutError,
)

# Request lifecycle exceptions
from .request import RequestCancelledError

# Retrieval exceptions
from .retrieval import (
    RetrievalError,
    SourceTimeoutError,
    SourceUnavailableError,
)

# Validation exceptions
from .validation import (
    EmptyQueryError,
    QueryTooLongError,
    ValidationError,
)

__all__ = [
    # Base
    "ExceptionContext",
    "OpsAssistantError",
    # Configuration
    "ConfigurationError",
    "MissingAPIKeyError",
    "InvalidConfigurationError",
    # Embedding
    "EmbeddingError",
    "EmbeddingAPIError",
    "EmbeddingTimeoutError",
    # LLM
    "LLMError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMGenerationError",
    "LLMTimeoutError",
    # Retrieval
    "RetrievalError",
    "SourceUnavailableError",
    "SourceTimeoutError",
    # Validation
    "ValidationError",
    "EmptyQueryError",
    "QueryTooLongError",
    # Request
    "RequestCancelledError",
]
