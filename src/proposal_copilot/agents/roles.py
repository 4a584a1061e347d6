from enum import Enum


class AgentRole(str, Enum):
    """Closed set of agent roles the copilot can run."""

    RETRIEVAL = "retrieval"
    INTERVIEW = "interview"
    DRAFTING = "drafting"
