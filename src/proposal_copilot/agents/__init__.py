"""
Dialogue agents: retrieval, interview and drafting.
"""

from proposal_copilot.agents.drafting import DraftingAgent
from proposal_copilot.agents.factory import AgentFactory
from proposal_copilot.agents.interview import InterviewOrchestrator, trim_history
from proposal_copilot.agents.retrieval import RetrievalAgent
from proposal_copilot.agents.roles import AgentRole

__all__ = [
    "AgentFactory",
    "AgentRole",
    "DraftingAgent",
    "InterviewOrchestrator",
    "RetrievalAgent",
    "trim_history",
]
