"""Input validation exceptions for the operations assistant."""

from .base import OpsAssistantError


class ValidationError(OpsAssistantError):
    """Invalid input data."""

    error_code = "OPS_VAL_001"


class EmptyQueryError(ValidationError):
    """Query string is empty."""

    error_code = "OPS_VAL_002"


class QueryTooLongError(ValidationError):
    """Query exceeds maximum length."""

    error_code = "OPS_VAL_003"
