"""Request lifecycle exceptions for the operations assistant."""

from .base import OpsAssistantError


class RequestCancelledError(OpsAssistantError):
    """The caller cancelled the request before it completed."""

    error_code = "OPS_REQ_001"
