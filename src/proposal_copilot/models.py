from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field

from proposal_copilot.storage.vector.models import ScoredRecord


class SourceDocument(BaseModel):
    """A raw document from the forum scraper or a direct upload."""

    title: Optional[str] = Field(default=None, validation_alias=AliasChoices("title", "t"))
    content: Optional[str] = Field(default=None, validation_alias=AliasChoices("content", "c"))
    url: Optional[str] = None
    id: Optional[str] = None
    date: Optional[str] = Field(default=None, validation_alias=AliasChoices("date", "d"))

    def missing_fields(self) -> List[str]:
        """Names of required fields that are absent or blank."""
        missing = []
        if not self.title or not self.title.strip():
            missing.append("title")
        if not self.content or not self.content.strip():
            missing.append("content")
        return missing

    def as_text(self) -> str:
        # Title and content are embedded together for better recall
        return f"Title: {self.title}\n\nContent: {self.content}"


class DialogueMessage(BaseModel):
    """One message of a conversation history."""

    role: Literal["user", "assistant", "system"]
    content: str


class SessionMemoryEntry(BaseModel):
    """Evidence retrieved on an earlier turn, kept for follow-up questions."""

    query: str
    documents: List[ScoredRecord]
    timestamp: float


class SkippedDocument(BaseModel):
    document: str = Field(..., description="Document id or title, for logging")
    reason: str


class ReindexResult(BaseModel):
    indexed: int = 0
    skipped: int = 0
    skip_reasons: List[SkippedDocument] = Field(default_factory=list)


class TurnResult(BaseModel):
    """Outcome of one dialogue turn."""

    response: str
    state: Dict[str, Any] = Field(..., description="Exported conversation state")
    history: List[DialogueMessage]
    documents: List[ScoredRecord] = Field(
        default_factory=list, description="Evidence embedded in the system prompt"
    )
    used_session_memory: bool = False
