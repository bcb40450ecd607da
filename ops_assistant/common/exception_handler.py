"""Exception handling utilities for consistent error formatting.

Formats exceptions as structured dictionaries, logs them consistently and
decides which failures of external services are worth retrying.
"""

import json
import logging
import traceback
from typing import Any

from ..core.domain.exceptions import (
    LLMConnectionError,
    LLMRateLimitError,
    LLMTimeoutError,
    OpsAssistantError,
)

logger = logging.getLogger(__name__)


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Format any exception as structured JSON.

    Works with both OpsAssistantError and standard Python exceptions.

    Args:
        exc: The exception to format.
        include_trace: If True, include full stack trace.
        extra_context: Additional context to include in output.

    Returns:
        Dictionary with structured error information.
    """
    if isinstance(exc, OpsAssistantError):
        result = exc.to_dict(include_trace=include_trace)
        if extra_context:
            result.setdefault("context", {}).update(extra_context)
        return result

    tb = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    last_frame = tb[-1] if tb else None

    result: dict[str, Any] = {
        "error": {
            "type": type(exc).__name__,
            "code": "PYTHON_ERR",
            "message": str(exc),
        },
        "location": {
            "class": "<unknown>",
            "method": last_frame.name if last_frame else "<unknown>",
            "file": (
                last_frame.filename.split("\\")[-1].split("/")[-1] if last_frame else "<unknown>"
            ),
            "line": last_frame.lineno if last_frame else 0,
        },
    }

    if extra_context:
        result["context"] = extra_context

    if include_trace:
        result["stack_trace"] = [
            line.strip()
            for line in traceback.format_exception(type(exc), exc, exc.__traceback__)
            if line.strip()
        ]

    return result


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    level: int = logging.ERROR,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """Log exception in structured JSON format.

    Args:
        exc: The exception to log.
        log: Logger instance to use (defaults to module logger).
        level: Logging level (default: ERROR).
        extra_context: Additional context to include.
    """
    log_instance = log or logger
    include_trace = level >= logging.ERROR
    exc_data = format_exception_json(exc, include_trace=include_trace, extra_context=extra_context)
    log_instance.log(
        level, json.dumps(exc_data, ensure_ascii=False), extra={"error_code": get_error_code(exc)}
    )


def get_error_code(exc: Exception) -> str:
    """Get the error code from an exception.

    Returns:
        Error code string (e.g., "OPS_LLM_003" or "PYTHON_ERR").
    """
    if isinstance(exc, OpsAssistantError):
        return exc.error_code
    return "PYTHON_ERR"


def is_retryable(exc: Exception) -> bool:
    """Whether a failed chat completion is worth another attempt."""
    if isinstance(exc, LLMRateLimitError | LLMConnectionError | LLMTimeoutError):
        return True
    if isinstance(exc, OpsAssistantError):
        return False
    return isinstance(exc, ConnectionError | TimeoutError)
