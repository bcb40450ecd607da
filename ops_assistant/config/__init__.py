"""Configuration package for the operations assistant."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
