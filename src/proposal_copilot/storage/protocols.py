"""
Storage protocol definitions for the vector index and serialized state.

These protocols define the interface that storage implementations must
provide. Blob stores deal only in opaque strings keyed by name; the vector
index and conversation state decide their own serialization.
"""

from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from proposal_copilot.storage.vector.models import RecordMetadata, ScoredRecord, VectorRecord


class BlobStore(Protocol):
    """
    Protocol for key/value persistence of serialized blobs.

    Writers win: the last ``save`` for a key replaces any earlier one.
    Implementations must never leave a partially written blob behind.
    """

    def load(self, key: str) -> Optional[str]:
        """
        Load a blob.

        Args:
            key: Blob name

        Returns:
            The stored string, or None if the key does not exist
        """
        ...

    def save(self, key: str, data: str) -> None:
        """
        Store a blob, replacing any previous value.

        Args:
            key: Blob name
            data: Serialized content
        """
        ...

    def delete(self, key: str) -> bool:
        """
        Remove a blob.

        Args:
            key: Blob name

        Returns:
            True if a blob was removed, False if it did not exist
        """
        ...


class VectorIndex(Protocol):
    """
    Protocol for a similarity index over embedded texts.

    The bundled implementation is a brute-force in-memory scan. An
    approximate-nearest-neighbour backend can replace it behind the same
    contract.
    """

    async def add(self, text: str, metadata: Optional[RecordMetadata] = None) -> str:
        """
        Embed and store a text.

        Returns:
            The record ID

        Raises:
            EmbeddingError: If the embedding call fails (index unchanged)
        """
        ...

    async def add_batch(self, items: Iterable[Tuple[str, Optional[RecordMetadata]]]) -> List[str]:
        """
        Add several texts one after another.

        A failure on item k leaves items 0..k-1 committed.
        """
        ...

    async def search(
        self,
        query: str,
        limit: int = 5,
        threshold: float = 0.7,
        doc_type: Optional[str] = None,
    ) -> List[ScoredRecord]:
        """
        Cosine-similarity search.

        Returns:
            Records scoring at least ``threshold``, best first, at most ``limit``
        """
        ...

    def get(self, record_id: str) -> Optional[VectorRecord]:
        ...

    def count(self) -> int:
        ...

    async def clear(self) -> int:
        """Remove every record. Returns the number removed."""
        ...

    async def clear_by_type(self, doc_type: str) -> int:
        """Remove records whose metadata type matches. Returns the number removed."""
        ...

    async def embed_record(
        self, text: str, metadata: Optional[RecordMetadata] = None
    ) -> VectorRecord:
        """Embed a text into a record without storing it."""
        ...

    async def replace_type(self, doc_type: str, records: Sequence[VectorRecord]) -> int:
        """
        Atomically replace every record of ``doc_type`` with ``records``.

        Returns:
            Number of records removed
        """
        ...

    async def delete_by_source(self, source_id: str) -> int:
        """Remove every chunk of one source document. Returns the number removed."""
        ...
