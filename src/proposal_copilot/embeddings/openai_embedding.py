"""
Embeddings from the OpenAI API or any endpoint speaking the same protocol.

Forum posts are embedded one chunk per request. The client is created
without retries: a failed call surfaces immediately and the vector index
reports it as an EmbeddingError.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from proposal_copilot.config import CopilotSettings

logger = logging.getLogger(__name__)

KNOWN_MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


def resolve_dimension(model: str, requested: Optional[int]) -> int:
    """Vector length for ``model``; self-hosted models must state it explicitly."""
    if requested is not None:
        return requested
    try:
        return KNOWN_MODEL_DIMENSIONS[model]
    except KeyError:
        raise ValueError(
            f"Unknown embedding model {model!r}: pass dimensions explicitly"
        ) from None


class OpenAIEmbedding:
    """
    TextEmbedding backed by ``AsyncOpenAI.embeddings``.

    OpenAI models treat stored passages and queries alike, so both calls
    send the raw text. ``base_url`` points the client at Azure, OpenRouter,
    LM Studio or Ollama's OpenAI-compatible endpoint.

    Example:
        >>> embedder = OpenAIEmbedding(model="text-embedding-3-small", dimensions=768)
        >>> vector = await embedder.embed_query("Who can propose a treasury grant?")
        >>> embedder.dimension
        768
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        dimensions: Optional[int] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 0,
    ):
        """
        Args:
            model: Embedding model name
            dimensions: Requested vector length (text-embedding-3 and self-hosted models)
            base_url: OpenAI-compatible endpoint (None = api.openai.com)
            api_key: Key for the endpoint (None = OPENAI_API_KEY)
            timeout: HTTP timeout of one request in seconds
            max_retries: Retries inside the HTTP client
        """
        try:
            from openai import AsyncOpenAI
        except ImportError as e:
            raise ImportError(
                "openai is required for OpenAIEmbedding. "
                "Install with: pip install proposal-copilot[embeddings-openai]"
            ) from e

        self._model = model
        self._requested_dimensions = dimensions
        self._dimension = resolve_dimension(model, dimensions)
        self._client = AsyncOpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

        logger.info(
            f"OpenAIEmbedding using {model} ({self._dimension} dims, "
            f"endpoint={base_url or 'default'})"
        )

    @classmethod
    def from_settings(cls, settings: CopilotSettings) -> "OpenAIEmbedding":
        return cls(
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
            timeout=settings.embedding_timeout or 30.0,
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model

    async def _request(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        params: Dict[str, Any] = {"model": self._model, "input": text}
        if self._requested_dimensions is not None:
            params["dimensions"] = self._requested_dimensions

        response = await self._client.embeddings.create(**params)
        return response.data[0].embedding

    async def embed_document(self, text: str) -> List[float]:
        return await self._request(text)

    async def embed_query(self, text: str) -> List[float]:
        return await self._request(text)
