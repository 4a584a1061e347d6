"""
proposal-copilot: retrieval-augmented dialogue core for drafting governance proposals.

Core components:
- storage: Vector index with persistence and blob stores
- ingest: Overlapping chunker feeding the index
- dialogue: Conversation state tracking, session memory and prompts
- agents: Retrieval (adaptive recall), interview orchestrator and drafting
- copilot: ProposalCopilot facade wiring everything together
"""

__version__ = "0.1.0"

from proposal_copilot.config import CopilotSettings
from proposal_copilot.copilot import ProposalCopilot
from proposal_copilot.errors import (
    CompletionError,
    ConfigurationError,
    CopilotError,
    EmbeddingError,
    IndexCorruptionError,
)
from proposal_copilot.models import (
    DialogueMessage,
    ReindexResult,
    SourceDocument,
    TurnResult,
)

__all__ = [
    "__version__",
    "CopilotSettings",
    "ProposalCopilot",
    # Models
    "DialogueMessage",
    "ReindexResult",
    "SourceDocument",
    "TurnResult",
    # Errors
    "CopilotError",
    "CompletionError",
    "ConfigurationError",
    "EmbeddingError",
    "IndexCorruptionError",
]
