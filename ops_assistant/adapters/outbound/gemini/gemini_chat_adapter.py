"""Gemini chat completion adapter using the google-genai SDK."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from google import genai

from ....common.utils import clean_text
from ....core.domain import ChatMessage
from ....core.domain.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMRateLimitError,
    MissingAPIKeyError,
)
from ....core.ports.llm_port import ChatCompletionPort

logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS = ("quota", "rate", "resource_exhausted", "429")


def _is_rate_limit(exc: Exception) -> bool:
    if getattr(exc, "code", None) == 429:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


class GeminiChatAdapter(ChatCompletionPort):
    """Chat completion backed by a Gemini model.

    The retrieved context is attached to the last user turn, the system
    prompt goes into ``system_instruction``. Retries are left to the caller.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.3,
        max_tokens: int = 2048,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: Google AI API key.
            model: Model to use.
            temperature: Sampling temperature (0.0-1.0).
            max_tokens: Maximum tokens to generate.
        """
        self.api_key = api_key
        self.model_name = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client: "genai.Client | None" = None

    def _get_client(self) -> "genai.Client":
        """Lazy load the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise MissingAPIKeyError(
                    "Google API key not set. Get one at https://aistudio.google.com/ "
                    "and set GOOGLE_API_KEY in your .env file.",
                    context={"model": self.model_name},
                )

            from google import genai

            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"Gemini client initialized for model: {self.model_name}")
        return self._client

    @staticmethod
    def build_contents(context: str, history: list[ChatMessage]) -> list:
        """Convert the conversation into genai contents.

        Assistant turns use the ``model`` role; the context block is
        prepended to the final user turn.
        """
        from google.genai import types

        contents = []
        last = len(history) - 1
        for index, message in enumerate(history):
            text = clean_text(message.content)
            if index == last and message.role == "user" and context:
                text = f"Context:\n{context}\n\n---\n\nUser Question: {text}"
            role = "model" if message.role in ("assistant", "model") else "user"
            contents.append(types.Content(role=role, parts=[types.Part.from_text(text=text)]))
        return contents

    async def complete(
        self,
        system_prompt: str,
        context: str,
        history: list[ChatMessage],
    ) -> str:
        from google.genai import types

        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(
                model=self.model_name,
                contents=self.build_contents(context, history),
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=self.temperature,
                    max_output_tokens=self.max_tokens,
                ),
            )
        except Exception as e:
            if _is_rate_limit(e):
                raise LLMRateLimitError(
                    "Gemini rate limit reached", cause=e, context={"model": self.model_name}
                ) from e
            raise LLMConnectionError(
                f"Gemini request failed: {e}", cause=e, context={"model": self.model_name}
            ) from e

        # Safety filters leave no candidates
        if not response.candidates or not response.text:
            raise LLMGenerationError(
                "Gemini returned no answer", context={"model": self.model_name}
            )
        return clean_text(response.text)
