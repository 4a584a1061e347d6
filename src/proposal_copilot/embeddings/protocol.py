"""
Text embedding protocol for proposal-copilot.

The vector index only needs two calls from an embedding provider: one for
texts being stored and one for search queries.
"""

from typing import List, Protocol

from typing_extensions import runtime_checkable


@runtime_checkable
class TextEmbedding(Protocol):
    """
    Protocol for text embedding providers.

    Implementations must return vectors of a constant length (``dimension``)
    so every record in one index can be compared with every query.

    Example:
        >>> embedder = OpenAIEmbedding(dimensions=768)
        >>> vector = await embedder.embed_query("how does staking work")
        >>> len(vector) == embedder.dimension
        True
    """

    @property
    def dimension(self) -> int:
        """Number of elements in each embedding vector."""
        ...

    @property
    def model_name(self) -> str:
        """Identifier of the embedding model."""
        ...

    async def embed_document(self, text: str) -> List[float]:
        """
        Generate an embedding for a text that will be stored in the index.

        Raises:
            ValueError: If text is empty
        """
        ...

    async def embed_query(self, text: str) -> List[float]:
        """
        Generate an embedding for a search query.

        Raises:
            ValueError: If text is empty
        """
        ...
