"""Chat completion exceptions for the operations assistant."""

from .base import OpsAssistantError


class LLMError(OpsAssistantError):
    """Base class for chat completion errors."""

    error_code = "OPS_LLM_001"


class LLMConnectionError(LLMError):
    """Failed to reach the chat completion service."""

    error_code = "OPS_LLM_002"


class LLMRateLimitError(LLMError):
    """Chat completion rate limit or quota exceeded."""

    error_code = "OPS_LLM_003"


class LLMGenerationError(LLMError):
    """The model returned no usable answer."""

    error_code = "OPS_LLM_004"


class LLMTimeoutError(LLMError):
    """Chat completion did not finish within the configured timeout."""

    error_code = "OPS_LLM_005"
