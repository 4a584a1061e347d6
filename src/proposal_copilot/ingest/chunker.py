"""
Fixed-size character chunking with overlap.

Windows of ``size`` characters advance by ``size - overlap`` until the
window start reaches the end of the text. Every chunk carries its lineage
(source id, index and chunk count) so a partial match can be traced back to
its document.
"""

import logging
import uuid
from typing import List, Optional, Tuple

from proposal_copilot.errors import ConfigurationError
from proposal_copilot.storage.protocols import VectorIndex
from proposal_copilot.storage.vector.models import RecordMetadata

logger = logging.getLogger(__name__)


class Chunker:
    """Splits documents into overlapping windows and indexes them."""

    def __init__(self, index: VectorIndex, size: int = 1000, overlap: int = 200):
        """
        Args:
            index: Index that receives the chunks
            size: Window length in characters
            overlap: Characters shared by neighbouring windows

        Raises:
            ConfigurationError: If size is not positive or overlap is not in [0, size)
        """
        if size <= 0:
            raise ConfigurationError(f"Chunk size must be positive, got {size}")
        if overlap < 0 or overlap >= size:
            raise ConfigurationError(
                f"Chunk overlap must be in [0, {size}), got {overlap}"
            )

        self.index = index
        self.size = size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.size - self.overlap

    def chunk(self, text: Optional[str]) -> List[str]:
        """Split text into overlapping windows. Empty or None input yields no chunks."""
        if not text:
            return []

        return [text[start : start + self.size] for start in range(0, len(text), self.step)]

    def reconstruct(self, chunks: List[str]) -> str:
        """Rebuild the original text from the output of :meth:`chunk`."""
        if not chunks:
            return ""
        return chunks[0] + "".join(c[self.overlap :] for c in chunks[1:])

    def prepare(
        self, text: Optional[str], metadata: Optional[RecordMetadata] = None
    ) -> List[Tuple[str, RecordMetadata]]:
        """
        Chunk a document and attach lineage to every chunk.

        Each chunk's metadata is a copy of ``metadata`` with ``source_id``,
        ``chunk_index``, ``total_chunks`` and ``chunk_id`` filled in.
        Whitespace-only windows carry nothing to embed and are dropped
        before numbering.
        """
        metadata = metadata or RecordMetadata()
        chunks = [c for c in self.chunk(text) if c.strip()]
        if not chunks:
            logger.warning(
                f"Document with empty text skipped (title={metadata.title!r})"
            )
            return []

        source_id = metadata.source_id or getattr(metadata, "id", None) or uuid.uuid4().hex
        items = []
        for i, chunk in enumerate(chunks):
            chunk_metadata = metadata.model_copy(
                update={
                    "source_id": source_id,
                    "chunk_index": i,
                    "total_chunks": len(chunks),
                    "chunk_id": f"{source_id}_chunk_{i}",
                },
                deep=True,
            )
            items.append((chunk, chunk_metadata))
        return items

    async def process_document(
        self, text: Optional[str], metadata: Optional[RecordMetadata] = None
    ) -> List[str]:
        """
        Chunk a document and add every chunk to the index.

        Returns:
            IDs of the indexed chunks

        Raises:
            EmbeddingError: If embedding a chunk fails (earlier chunks stay indexed)
        """
        items = self.prepare(text, metadata)
        if not items:
            return []

        ids = await self.index.add_batch(items)
        logger.info(f"Indexed document {items[0][1].source_id} as {len(ids)} chunks")
        return ids
