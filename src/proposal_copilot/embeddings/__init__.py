"""
Text embedding abstractions for proposal-copilot.

Provides the embedding protocol with optional adapters:
- OpenAIEmbedding: OpenAI (or OpenAI-compatible) embedding API
- E5Embedding: local E5 models through sentence-transformers
"""

from proposal_copilot.embeddings.protocol import TextEmbedding

__all__ = [
    "TextEmbedding",
]

# Optional adapters (import only if dependencies available)
try:
    from proposal_copilot.embeddings.openai_embedding import OpenAIEmbedding  # noqa: F401

    __all__.append("OpenAIEmbedding")
except ImportError:
    pass

try:
    from proposal_copilot.embeddings.e5_embedding import E5Embedding  # noqa: F401

    __all__.append("E5Embedding")
except ImportError:
    pass
