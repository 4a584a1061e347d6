"""
In-memory vector index implementation.

Brute-force cosine similarity over every stored vector. This is fine for the
hundreds to low thousands of chunks a governance forum produces; larger
corpora should swap in an approximate-nearest-neighbour index behind the
same VectorIndex protocol.
"""

import asyncio
import json
import logging
import uuid
from functools import cached_property
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from pydantic import ValidationError

from proposal_copilot.embeddings.protocol import TextEmbedding
from proposal_copilot.errors import ConfigurationError, EmbeddingError, IndexCorruptionError
from proposal_copilot.storage.vector.models import RecordMetadata, ScoredRecord, VectorRecord

if TYPE_CHECKING:
    from proposal_copilot.storage.protocols import BlobStore

logger = logging.getLogger(__name__)


def cosine_similarities(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of ``query`` against every row of ``matrix``.

    Rows (or a query) with zero magnitude score 0 rather than dividing by zero.
    """
    if matrix.size == 0:
        return np.zeros(0)

    row_norms = np.linalg.norm(matrix, axis=1)
    query_norm = np.linalg.norm(query)
    denominators = row_norms * query_norm
    dots = matrix @ query

    scores = np.zeros_like(dots)
    np.divide(dots, denominators, out=scores, where=denominators > 0)
    return scores


class _Snapshot:
    """Immutable view of the index contents. Searches read one snapshot end to end."""

    def __init__(self, records: Tuple[VectorRecord, ...] = ()):
        self.records = records

    @cached_property
    def matrix(self) -> np.ndarray:
        if not self.records:
            return np.zeros((0, 0))
        return np.asarray([r.embedding for r in self.records], dtype=np.float64)

    @property
    def dimension(self) -> Optional[int]:
        return len(self.records[0].embedding) if self.records else None


class InMemoryVectorIndex:
    """
    In-memory implementation of the VectorIndex protocol.

    Writers (add, clear) take a lock and publish a new snapshot; readers use
    whichever snapshot is current when they start, so a search never sees a
    half-built record. The index persists itself through an optional
    BlobStore after every write. Persistence failures are logged and the
    in-memory contents stay authoritative.
    """

    def __init__(
        self,
        embedding: TextEmbedding,
        blob_store: Optional["BlobStore"] = None,
        blob_key: str = "vector_store",
        embed_timeout: Optional[float] = None,
        autoload: bool = True,
    ):
        """
        Initialize the index.

        Args:
            embedding: Embedding provider used for stored texts and queries
            blob_store: Where to persist the index (None = memory only)
            blob_key: Blob name for the serialized index
            embed_timeout: Seconds to wait for one embedding call (None = no limit)
            autoload: Load a previously persisted index immediately
        """
        self.embedding = embedding
        self._blob_store = blob_store
        self._blob_key = blob_key
        self._embed_timeout = embed_timeout
        self._snapshot = _Snapshot()
        self._write_lock = asyncio.Lock()

        if autoload:
            self.load()

        logger.info(f"InMemoryVectorIndex initialized with {self.count()} records")

    # ------------------------------------------------------------------
    # Embedding
    # ------------------------------------------------------------------

    async def _embed(self, text: str, is_query: bool) -> List[float]:
        call = self.embedding.embed_query(text) if is_query else self.embedding.embed_document(text)
        try:
            vector = await asyncio.wait_for(call, timeout=self._embed_timeout)
        except asyncio.TimeoutError as e:
            raise EmbeddingError(f"Embedding timed out after {self._embed_timeout}s") from e
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e

        if not vector:
            raise EmbeddingError("Embedding provider returned an empty vector")

        dimension = self._snapshot.dimension
        if dimension is not None and len(vector) != dimension:
            raise EmbeddingError(
                f"Embedding has {len(vector)} dimensions, index holds {dimension}"
            )

        return [float(v) for v in vector]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def embed_record(
        self, text: str, metadata: Optional[RecordMetadata] = None
    ) -> VectorRecord:
        """
        Build a record without storing it.

        Raises:
            EmbeddingError: If the embedding call fails
            ConfigurationError: If text is empty
        """
        if not text or not text.strip():
            raise ConfigurationError("Cannot index empty text")

        metadata = metadata.model_copy(deep=True) if metadata else RecordMetadata()
        record_id = metadata.chunk_id or getattr(metadata, "id", None) or f"doc_{uuid.uuid4().hex}"

        embedding = await self._embed(text, is_query=False)
        return VectorRecord(id=record_id, embedding=embedding, text=text, metadata=metadata)

    async def _add(self, text: str, metadata: Optional[RecordMetadata]) -> str:
        # Embed before taking the lock: a failed call leaves the index untouched
        record = await self.embed_record(text, metadata)
        record_id = record.id
        embedding = record.embedding

        async with self._write_lock:
            # Re-check against the snapshot we are about to extend
            dimension = self._snapshot.dimension
            if dimension is not None and len(embedding) != dimension:
                raise EmbeddingError(
                    f"Embedding has {len(embedding)} dimensions, index holds {dimension}"
                )

            # An existing id is replaced (records themselves are immutable)
            kept = tuple(r for r in self._snapshot.records if r.id != record_id)
            if len(kept) != len(self._snapshot.records):
                logger.debug(f"Replacing existing record {record_id}")
            self._snapshot = _Snapshot(kept + (record,))

        logger.debug(f"Inserted record {record_id}: '{text[:50]}...'")
        return record_id

    async def add(self, text: str, metadata: Optional[RecordMetadata] = None) -> str:
        """
        Embed a text, store it and persist the index.

        Raises:
            EmbeddingError: If the embedding call fails (index unchanged)
            ConfigurationError: If text is empty
        """
        record_id = await self._add(text, metadata)
        await self._persist()
        return record_id

    async def add_batch(
        self, items: Iterable[Tuple[str, Optional[RecordMetadata]]]
    ) -> List[str]:
        """
        Add texts one after another.

        Not transactional: if item k fails, items 0..k-1 stay committed and
        the error propagates. The index is persisted once at the end, even on
        failure, so committed items are not lost.
        """
        ids: List[str] = []
        try:
            for text, metadata in items:
                ids.append(await self._add(text, metadata))
        finally:
            if ids:
                await self._persist()

        logger.info(f"Added batch of {len(ids)} records")
        return ids

    async def clear(self) -> int:
        """Remove every record and persist the empty index."""
        async with self._write_lock:
            count = len(self._snapshot.records)
            self._snapshot = _Snapshot()

        await self._persist()
        logger.info(f"Cleared all records ({count} total)")
        return count

    async def clear_by_type(self, doc_type: str) -> int:
        """Remove records whose metadata type equals ``doc_type``; others are untouched."""
        async with self._write_lock:
            old = self._snapshot.records
            kept = tuple(r for r in old if r.metadata.type != doc_type)
            self._snapshot = _Snapshot(kept)

        removed = len(old) - len(kept)
        await self._persist()
        logger.info(f"Cleared {removed} records of type={doc_type} ({len(kept)} remain)")
        return removed

    async def replace_type(self, doc_type: str, records: Sequence[VectorRecord]) -> int:
        """
        Swap every record of ``doc_type`` for ``records`` in one write.

        Searches see either the old set or the new one, never a mix. Later
        records win over earlier ones with the same id.

        Returns:
            Number of records removed

        Raises:
            EmbeddingError: If the new records disagree on dimension with each
                other or with the records that stay (index unchanged)
        """
        incoming: Dict[str, VectorRecord] = {}
        for record in records:
            incoming.pop(record.id, None)
            incoming[record.id] = record.model_copy(
                update={"metadata": record.metadata.model_copy(update={"type": doc_type})}
            )

        async with self._write_lock:
            old = self._snapshot.records
            kept = tuple(
                r for r in old if r.metadata.type != doc_type and r.id not in incoming
            )
            merged = kept + tuple(incoming.values())
            if len({len(r.embedding) for r in merged}) > 1:
                raise EmbeddingError(f"Replacement records for type={doc_type} mix dimensions")
            self._snapshot = _Snapshot(merged)

        removed = len(old) - len(kept)
        await self._persist()
        logger.info(
            f"Replaced {removed} records of type={doc_type} with {len(incoming)} new records"
        )
        return removed

    async def delete_by_source(self, source_id: str) -> int:
        """Remove every chunk whose metadata ``source_id`` matches."""
        async with self._write_lock:
            old = self._snapshot.records
            kept = tuple(r for r in old if r.metadata.source_id != source_id)
            if len(kept) == len(old):
                return 0
            self._snapshot = _Snapshot(kept)

        removed = len(old) - len(kept)
        await self._persist()
        logger.info(f"Deleted {removed} chunks of source {source_id}")
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        limit: int = 5,
        threshold: float = 0.7,
        doc_type: Optional[str] = None,
    ) -> List[ScoredRecord]:
        """
        Search by cosine similarity.

        Args:
            query: Query text (embedded with the provider's query mode)
            limit: Maximum number of results
            threshold: Minimum similarity a result must reach
            doc_type: Only consider records of this metadata type

        Returns:
            Scored records, highest score first

        Raises:
            EmbeddingError: If the query cannot be embedded
        """
        if not query or not query.strip():
            return []

        snapshot = self._snapshot
        if not snapshot.records:
            logger.debug("Search on empty index")
            return []

        query_vector = np.asarray(await self._embed(query, is_query=True), dtype=np.float64)
        scores = cosine_similarities(snapshot.matrix, query_vector)

        # Stable sort keeps insertion order between equal scores
        order = np.argsort(-scores, kind="stable")
        results: List[ScoredRecord] = []
        for i in order:
            score = float(scores[i])
            if score < threshold:
                break
            record = snapshot.records[i]
            if doc_type is not None and record.metadata.type != doc_type:
                continue
            results.append(
                ScoredRecord(id=record.id, text=record.text, metadata=record.metadata, score=score)
            )
            if len(results) >= limit:
                break

        logger.debug(
            f"{len(results)} results for '{query[:50]}' "
            f"(threshold={threshold}, limit={limit}, searched={len(snapshot.records)})"
        )
        return results

    def get(self, record_id: str) -> Optional[VectorRecord]:
        for record in self._snapshot.records:
            if record.id == record_id:
                return record
        return None

    def count(self) -> int:
        return len(self._snapshot.records)

    def stats(self) -> dict:
        """Record count, vector dimension and per-type counts."""
        types: Dict[str, int] = {}
        for record in self._snapshot.records:
            types[record.metadata.type] = types.get(record.metadata.type, 0) + 1

        return {
            "total_records": self.count(),
            "dimension": self._snapshot.dimension,
            "document_types": types,
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @staticmethod
    def encode(records: Sequence[VectorRecord]) -> str:
        """Serialize records as ``{"vectors": [...], "metadata": [...]}``."""
        return json.dumps(
            {
                "vectors": [{"id": r.id, "embedding": r.embedding} for r in records],
                "metadata": [
                    {**r.metadata.model_dump(mode="json"), "id": r.id, "text": r.text}
                    for r in records
                ],
            }
        )

    @staticmethod
    def decode(raw: str) -> Tuple[VectorRecord, ...]:
        """
        Parse a serialized index.

        Raises:
            IndexCorruptionError: If the blob is not a well-formed index
        """
        try:
            data = json.loads(raw)
            vectors = data["vectors"]
            metadata = data["metadata"]
        except (ValueError, KeyError, TypeError) as e:
            raise IndexCorruptionError(f"Unreadable vector store blob: {e}") from e

        if len(vectors) != len(metadata):
            raise IndexCorruptionError(
                f"Vector store blob has {len(vectors)} vectors but {len(metadata)} metadata entries"
            )

        records = []
        try:
            for vector, meta in zip(vectors, metadata):
                meta = dict(meta)
                record_id = meta.pop("id", vector["id"])
                if record_id != vector["id"]:
                    raise IndexCorruptionError(
                        f"Vector id {vector['id']} does not match metadata id {record_id}"
                    )
                text = meta.pop("text")
                records.append(
                    VectorRecord(
                        id=record_id,
                        embedding=vector["embedding"],
                        text=text,
                        metadata=RecordMetadata(**meta),
                    )
                )
        except (KeyError, TypeError, ValidationError) as e:
            raise IndexCorruptionError(f"Malformed vector store entry: {e}") from e

        if len({len(r.embedding) for r in records}) > 1:
            raise IndexCorruptionError("Vector store blob mixes embedding dimensions")

        return tuple(records)

    def load(self) -> int:
        """
        Replace the in-memory contents with the persisted index.

        A corrupt blob is logged and replaced by an empty index.

        Returns:
            Number of records loaded
        """
        if self._blob_store is None:
            return 0

        try:
            raw = self._blob_store.load(self._blob_key)
        except Exception as e:
            logger.error(f"Failed to read vector store blob {self._blob_key}: {e}")
            return 0

        if raw is None:
            logger.info("No persisted vector store found")
            return 0

        try:
            records = self.decode(raw)
        except IndexCorruptionError as e:
            logger.error(f"{e}; starting with an empty index")
            records = ()

        self._snapshot = _Snapshot(records)
        if records:
            logger.info(
                f"Loaded {len(records)} records from {self._blob_key} "
                f"(dimension={self._snapshot.dimension})"
            )
        return len(records)

    async def _persist(self) -> None:
        if self._blob_store is None:
            return

        # Serialize under the lock so the blob matches one consistent snapshot
        async with self._write_lock:
            payload = self.encode(self._snapshot.records)
            try:
                self._blob_store.save(self._blob_key, payload)
            except Exception as e:
                logger.error(f"Failed to persist vector store: {e}")
