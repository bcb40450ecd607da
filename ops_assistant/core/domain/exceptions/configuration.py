"""Configuration exceptions for the operations assistant."""

from .base import OpsAssistantError


class ConfigurationError(OpsAssistantError):
    """Invalid or missing configuration."""

    error_code = "OPS_CFG_001"


class MissingAPIKeyError(ConfigurationError):
    """Required API key is not set."""

    error_code = "OPS_CFG_002"


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid."""

    error_code = "OPS_CFG_003"
