"""
Models for vector storage.

Defines the records held by the vector index and the scored views
returned from similarity search.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class RecordMetadata(BaseModel):
    """
    Metadata attached to an indexed text.

    Unknown keys are preserved so callers can carry their own lineage fields.
    """

    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    url: Optional[str] = None
    date: Optional[str] = None
    type: str = "document"
    source: Optional[str] = None

    # Chunk lineage
    source_id: Optional[str] = None
    chunk_index: Optional[int] = None
    total_chunks: Optional[int] = None
    chunk_id: Optional[str] = None


class VectorRecord(BaseModel):
    """An immutable (id, embedding, text, metadata) entry in the index."""

    model_config = ConfigDict(frozen=True)

    id: str
    embedding: List[float]
    text: str
    metadata: RecordMetadata


class ScoredRecord(BaseModel):
    """A search hit: the record without its embedding, plus its cosine score."""

    id: str
    text: str
    metadata: RecordMetadata
    score: float

    @property
    def title(self) -> str:
        return self.metadata.title or f"Document {self.id}"
