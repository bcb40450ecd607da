"""Chat Completion Port Interface."""

from abc import ABC, abstractmethod

from ..domain import ChatMessage


class ChatCompletionPort(ABC):
    """Abstract interface for chat completion providers."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        context: str,
        history: list[ChatMessage],
    ) -> str:
        """Complete a conversation.

        Args:
            system_prompt: Instructions for the model.
            context: Retrieved evidence; may be empty.
            history: Prior turns, ending with the current user question.

        Returns:
            The model's answer text.
        """
        ...
