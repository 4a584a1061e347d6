"""
ProposalCopilot: the public entry point.

Wires the vector index, chunker and agents together and exposes the
operations an application needs: indexing forum posts and documents,
searching, running interview turns and drafting proposals.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from proposal_copilot.agents.drafting import DraftingAgent
from proposal_copilot.agents.factory import AgentFactory
from proposal_copilot.agents.interview import InterviewOrchestrator
from proposal_copilot.agents.retrieval import RetrievalAgent
from proposal_copilot.agents.roles import AgentRole
from proposal_copilot.completion import CompletionGateway
from proposal_copilot.config import CopilotSettings
from proposal_copilot.embeddings.protocol import TextEmbedding
from proposal_copilot.errors import ConfigurationError, CopilotError, EmbeddingError
from proposal_copilot.ingest.chunker import Chunker
from proposal_copilot.models import (
    DialogueMessage,
    ReindexResult,
    SkippedDocument,
    SourceDocument,
    TurnResult,
)
from proposal_copilot.storage.blob.file import FileBlobStore
from proposal_copilot.storage.protocols import BlobStore
from proposal_copilot.storage.vector.memory import InMemoryVectorIndex
from proposal_copilot.storage.vector.models import RecordMetadata, ScoredRecord, VectorRecord

logger = logging.getLogger(__name__)

DocumentInput = Union[SourceDocument, Mapping[str, Any]]
MessageInput = Union[DialogueMessage, Mapping[str, Any]]

_SOURCE_LABELS = {"forum": "Forum Post"}


def _raw_label(raw: DocumentInput) -> str:
    if isinstance(raw, Mapping):
        return str(raw.get("id") or raw.get("title") or raw.get("t") or "<unknown>")
    return "<unknown>"


class ProposalCopilot:
    """
    Retrieval-augmented proposal drafting assistant.

    Example:
        >>> copilot = ProposalCopilot.from_settings(CopilotSettings())
        >>> await copilot.add_documents([{"title": "Staking", "content": "..."}])
        >>> result = await copilot.turn("s1", [], "How do staking rewards work?")
        >>> print(result.response)
    """

    def __init__(
        self,
        index: InMemoryVectorIndex,
        completion: CompletionGateway,
        settings: Optional[CopilotSettings] = None,
        state_store: Optional[BlobStore] = None,
    ):
        self.settings = settings or CopilotSettings()
        self.index = index
        self.chunker = Chunker(
            index, size=self.settings.chunk_size, overlap=self.settings.chunk_overlap
        )

        factory = AgentFactory(self.settings, index, completion, state_store=state_store)
        self.retrieval: RetrievalAgent = factory.create(AgentRole.RETRIEVAL)
        self.interview: InterviewOrchestrator = factory.create(AgentRole.INTERVIEW)
        self.drafting: DraftingAgent = factory.create(AgentRole.DRAFTING)

        logger.info(f"ProposalCopilot ready ({index.count()} indexed records)")

    @classmethod
    def from_settings(
        cls,
        settings: Optional[CopilotSettings] = None,
        embedding: Optional[TextEmbedding] = None,
        completion: Optional[CompletionGateway] = None,
        blob_store: Optional[BlobStore] = None,
    ) -> "ProposalCopilot":
        """
        Build a copilot with file persistence under ``settings.data_dir``.

        The OpenAI embedding adapter and a casual-llm provider are created
        from settings unless supplied.
        """
        settings = settings or CopilotSettings()

        if embedding is None:
            from proposal_copilot.embeddings.openai_embedding import OpenAIEmbedding

            embedding = OpenAIEmbedding.from_settings(settings)

        blob_store = blob_store or FileBlobStore(settings.data_dir)
        index = InMemoryVectorIndex(
            embedding,
            blob_store=blob_store,
            blob_key=settings.vector_blob_key,
            embed_timeout=settings.embedding_timeout,
        )
        completion = completion or CompletionGateway.from_settings(settings)
        return cls(index, completion, settings=settings, state_store=blob_store)

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_document(doc: DocumentInput) -> SourceDocument:
        if isinstance(doc, SourceDocument):
            return doc
        return SourceDocument.model_validate(dict(doc))

    @staticmethod
    def _metadata_for(doc: SourceDocument, doc_type: str) -> RecordMetadata:
        return RecordMetadata(
            title=doc.title,
            url=doc.url,
            date=doc.date,
            type=doc_type,
            source=_SOURCE_LABELS.get(doc_type, doc_type),
            source_id=doc.id or uuid.uuid4().hex,
        )

    async def _index_document(self, doc: SourceDocument, doc_type: str) -> List[str]:
        metadata = self._metadata_for(doc, doc_type)
        try:
            return await self.chunker.process_document(doc.as_text(), metadata)
        except CopilotError:
            # A failed document leaves no chunks behind
            await self.index.delete_by_source(metadata.source_id)
            raise

    async def _embed_document(self, doc: SourceDocument, doc_type: str) -> List[VectorRecord]:
        items = self.chunker.prepare(doc.as_text(), self._metadata_for(doc, doc_type))
        return [await self.index.embed_record(text, metadata) for text, metadata in items]

    async def add_documents(
        self, documents: Iterable[DocumentInput], doc_type: str = "forum"
    ) -> List[str]:
        """
        Chunk and index documents.

        Returns:
            IDs of every indexed chunk

        Raises:
            ConfigurationError: If a document lacks a title or content
            EmbeddingError: If embedding fails (earlier documents stay indexed,
                the failing document's chunks are removed)
        """
        ids: List[str] = []
        for raw in documents:
            try:
                doc = self._parse_document(raw)
            except ValidationError as e:
                raise ConfigurationError(f"Malformed document: {e}") from e

            missing = doc.missing_fields()
            if missing:
                raise ConfigurationError(
                    f"Document {doc.id or doc.title!r} is missing {', '.join(missing)}"
                )
            ids.extend(await self._index_document(doc, doc_type))

        logger.info(f"Added {len(ids)} chunks of type={doc_type}")
        return ids

    async def reindex(
        self, documents: Sequence[DocumentInput], doc_type: str = "forum"
    ) -> ReindexResult:
        """
        Replace every record of ``doc_type`` with ``documents``.

        New records are embedded first and swapped in with one write, so
        searches running meanwhile keep seeing the previous corpus. Documents
        without a title or content, and documents that fail to embed, are
        skipped and reported instead of aborting the run; a skipped document
        contributes no chunks.
        """
        logger.info(f"Reindexing {len(documents)} documents of type={doc_type}")

        result = ReindexResult()
        staged: List[VectorRecord] = []
        for raw in documents:
            try:
                doc = self._parse_document(raw)
            except ValidationError as e:
                self._skip(result, _raw_label(raw), f"malformed: {e.error_count()} errors")
                continue

            label = doc.id or doc.title or "<untitled>"
            missing = doc.missing_fields()
            if missing:
                self._skip(result, label, f"missing {', '.join(missing)}")
                continue

            try:
                records = await self._embed_document(doc, doc_type)
            except EmbeddingError as e:
                self._skip(result, label, f"embedding failed: {e}")
                continue
            except CopilotError as e:
                self._skip(result, label, f"rejected: {e}")
                continue

            if not records:
                self._skip(result, label, "no indexable text")
                continue

            staged.extend(records)
            result.indexed += 1

        removed = await self.index.replace_type(doc_type, staged)
        logger.info(
            f"Reindexing complete: {result.indexed} indexed, {result.skipped} skipped, "
            f"{removed} old records replaced by {len(staged)} chunks"
        )
        return result

    @staticmethod
    def _skip(result: ReindexResult, document: str, reason: str) -> None:
        logger.warning(f"Skipping document {document}: {reason}")
        result.skipped += 1
        result.skip_reasons.append(SkippedDocument(document=document, reason=reason))

    async def clear(self) -> int:
        return await self.index.clear()

    async def clear_by_type(self, doc_type: str) -> int:
        return await self.index.clear_by_type(doc_type)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        doc_type: Optional[str] = None,
    ) -> List[ScoredRecord]:
        """Plain similarity search with the configured defaults."""
        return await self.index.search(
            query,
            limit=limit or self.settings.search_limit,
            threshold=self.settings.search_threshold if threshold is None else threshold,
            doc_type=doc_type,
        )

    async def retrieve(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        doc_type: Optional[str] = None,
    ) -> List[ScoredRecord]:
        """Adaptive-recall search returning cleaned documents."""
        return await self.retrieval.retrieve(
            query, limit=limit, threshold=threshold, doc_type=doc_type
        )

    # ------------------------------------------------------------------
    # Dialogue
    # ------------------------------------------------------------------

    async def turn(
        self,
        session_id: str,
        history: Sequence[MessageInput],
        new_message: str,
        additional_context: Optional[str] = None,
    ) -> TurnResult:
        messages = [
            m if isinstance(m, DialogueMessage) else DialogueMessage.model_validate(dict(m))
            for m in history
        ]
        return await self.interview.turn(
            session_id, messages, new_message, additional_context=additional_context
        )

    def get_state(self, session_id: str) -> Dict[str, Any]:
        return self.interview.get_state(session_id).export()

    async def clear_session(self, session_id: str) -> None:
        await self.interview.clear_session(session_id)

    async def resolve_contradiction(self, session_id: str, index: int, resolution: str) -> bool:
        return await self.interview.resolve_contradiction(session_id, index, resolution)

    async def draft(self, session_id: str, template: Optional[str] = None) -> str:
        """
        Draft a proposal from a session's interview.

        Evidence comes from the session's fresh session memory, or else from
        a search over the labels of the topics discussed.

        Raises:
            CompletionError: If the completion call fails
        """
        state = self.interview.get_state(session_id)

        entry = self.interview.session_memory.recall(session_id)
        documents: List[ScoredRecord] = list(entry.documents) if entry else []

        if not documents and state.topics:
            query = " ".join(t.label for t in state.topics)
            try:
                documents = await self.retrieval.retrieve(query)
            except CopilotError as e:
                logger.warning(f"Drafting without documents for session {session_id}: {e}")

        return await self.drafting.draft(state, documents, template=template)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def stats(self) -> Dict[str, Any]:
        return {
            **self.index.stats(),
            "embedding_model": self.index.embedding.model_name,
            "chunk_size": self.chunker.size,
            "chunk_overlap": self.chunker.overlap,
        }
