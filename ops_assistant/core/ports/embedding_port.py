"""Embedding Port Interface."""

from abc import ABC, abstractmethod


class EmbeddingPort(ABC):
    """Abstract interface for the text embedding service."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text into a fixed-length vector."""
        ...
