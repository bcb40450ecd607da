"""Common utilities and shared functionality.

Helpers used across layers: text cleaning at the system boundary and
structured exception formatting/logging.
"""

from .exception_handler import format_exception_json, get_error_code, is_retryable, log_exception
from .utils import clean_text, truncate_text

__all__ = [
    # Utilities
    "clean_text",
    "truncate_text",
    # Exception handlers
    "format_exception_json",
    "log_exception",
    "get_error_code",
    "is_retryable",
]
