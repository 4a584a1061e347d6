"""Document chunking and indexing."""

from proposal_copilot.ingest.chunker import Chunker

__all__ = ["Chunker"]
