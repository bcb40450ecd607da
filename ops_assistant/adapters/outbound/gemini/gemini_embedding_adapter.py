"""Gemini embedding adapter using the google-genai SDK."""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from google import genai

from ....core.domain.exceptions import EmbeddingAPIError, MissingAPIKeyError
from ....core.ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)

QUERY_TASK_TYPE = "RETRIEVAL_QUERY"


class GeminiEmbeddingAdapter(EmbeddingPort):
    """Embeds user questions with a Gemini embedding model.

    Documents are embedded offline with the same model, so only the
    question side (task type RETRIEVAL_QUERY) is needed here.
    """

    def __init__(self, api_key: str, model_name: str = "gemini-embedding-001") -> None:
        self.api_key = api_key
        self.model_name = model_name
        self._client: "genai.Client | None" = None

    def _get_client(self) -> "genai.Client":
        """Lazy load the genai client."""
        if self._client is None:
            if not self.api_key:
                raise MissingAPIKeyError(
                    "Google API key not set. Set GOOGLE_API_KEY in your .env file.",
                    context={"model": self.model_name},
                )

            from google import genai

            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"Gemini embedding client initialized for model: {self.model_name}")
        return self._client

    async def embed(self, text: str) -> list[float]:
        from google.genai import types

        client = self._get_client()
        try:
            result = await client.aio.models.embed_content(
                model=self.model_name,
                contents=text,
                config=types.EmbedContentConfig(task_type=QUERY_TASK_TYPE),
            )
        except Exception as e:
            raise EmbeddingAPIError(
                "Gemini embedding request failed", cause=e, context={"model": self.model_name}
            ) from e

        if not result.embeddings or not result.embeddings[0].values:
            raise EmbeddingAPIError(
                "Gemini returned no embedding", context={"model": self.model_name}
            )
        return list(result.embeddings[0].values)
