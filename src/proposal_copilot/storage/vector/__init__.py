"""Vector index implementations and record models."""

from proposal_copilot.storage.vector.memory import InMemoryVectorIndex
from proposal_copilot.storage.vector.models import RecordMetadata, ScoredRecord, VectorRecord

__all__ = [
    "InMemoryVectorIndex",
    "RecordMetadata",
    "ScoredRecord",
    "VectorRecord",
]
