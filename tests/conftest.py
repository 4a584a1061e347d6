"""Shared fixtures: a deterministic embedding and a mocked chat provider."""

import re
from typing import List
from unittest.mock import AsyncMock, Mock

import pytest

from proposal_copilot.completion import CompletionGateway
from proposal_copilot.storage.blob.memory import InMemoryBlobStore
from proposal_copilot.storage.vector.memory import InMemoryVectorIndex

# One dimension per concept; words outside every concept are ignored
CONCEPTS = (
    {"staking", "stake", "stakers", "validators"},
    {"treasury", "allocation", "funding", "budget"},
    {"branding", "logo", "brand", "design"},
    {"timeline", "milestones", "schedule", "deadline"},
)


class KeywordEmbedding:
    """Counts concept keywords. Texts with no known word embed to the zero vector."""

    def __init__(self):
        self.document_calls = 0
        self.query_calls = 0

    @property
    def dimension(self) -> int:
        return len(CONCEPTS)

    @property
    def model_name(self) -> str:
        return "keyword-test"

    @staticmethod
    def vectorize(text: str) -> List[float]:
        words = re.findall(r"\w+", text.lower())
        return [float(sum(1 for w in words if w in concept)) for concept in CONCEPTS]

    async def embed_document(self, text: str) -> List[float]:
        self.document_calls += 1
        return self.vectorize(text)

    async def embed_query(self, text: str) -> List[float]:
        self.query_calls += 1
        return self.vectorize(text)


@pytest.fixture
def embedding():
    return KeywordEmbedding()


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def index(embedding, blob_store):
    return InMemoryVectorIndex(embedding, blob_store=blob_store)


@pytest.fixture
def mock_provider():
    """casual-llm provider whose chat() returns a fixed assistant message."""
    provider = Mock()
    provider.chat = AsyncMock(return_value=Mock(content="Here is what the documents say."))
    return provider


@pytest.fixture
def completion(mock_provider):
    return CompletionGateway(mock_provider, timeout=5)
