"""
Dialogue state tracking and prompt assembly.
"""

from proposal_copilot.dialogue.analyzer import ConversationAnalyzer
from proposal_copilot.dialogue.session_memory import SessionMemory
from proposal_copilot.dialogue.state import (
    Contradiction,
    ConversationState,
    Insight,
    Topic,
)

__all__ = [
    "ConversationAnalyzer",
    "ConversationState",
    "Contradiction",
    "Insight",
    "SessionMemory",
    "Topic",
]
