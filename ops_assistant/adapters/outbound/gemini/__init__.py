"""Gemini adapters for embeddings and chat completion."""

from .gemini_chat_adapter import GeminiChatAdapter
from .gemini_embedding_adapter import GeminiEmbeddingAdapter

__all__ = ["GeminiChatAdapter", "GeminiEmbeddingAdapter"]
