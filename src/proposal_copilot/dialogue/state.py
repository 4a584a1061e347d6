"""
Conversation state for one dialogue session.

Holds the insights, exploration topics and contradictions extracted from a
conversation. Insights only accumulate; topics are unique by label and
change status; contradictions change only through an explicit resolution.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

InsightSource = Literal["user", "agent", "document"]
Level = Literal["high", "medium", "low"]
TopicStatus = Literal["pending", "in_progress", "completed"]
ContradictionStatus = Literal["unresolved", "resolved"]


class Insight(BaseModel):
    text: str
    source: InsightSource = "user"
    timestamp: datetime = Field(default_factory=datetime.now)
    confidence: Level = "medium"


class Topic(BaseModel):
    label: str
    priority: Level = "medium"
    status: TopicStatus = "pending"
    created: datetime = Field(default_factory=datetime.now)
    last_updated: Optional[datetime] = None


class Contradiction(BaseModel):
    statement_a: str
    statement_b: str
    description: Optional[str] = None
    status: ContradictionStatus = "unresolved"
    resolution: Optional[str] = None
    identified_at: datetime = Field(default_factory=datetime.now)
    resolved_at: Optional[datetime] = None


class ConversationState(BaseModel):
    """
    Mutable per-session state updated on every dialogue turn.

    ``processed_messages`` holds fingerprints of user messages already
    analyzed, so repeated analysis of a growing history never extracts the
    same insight twice.
    """

    insights: List[Insight] = Field(default_factory=list)
    topics: List[Topic] = Field(default_factory=list)
    contradictions: List[Contradiction] = Field(default_factory=list)
    processed_messages: List[str] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=datetime.now)

    def _touch(self) -> None:
        self.last_updated = datetime.now()

    # Insights

    def add_insight(
        self, text: str, source: InsightSource = "user", confidence: Level = "medium"
    ) -> Insight:
        insight = Insight(text=text, source=source, confidence=confidence)
        self.insights.append(insight)
        self._touch()
        logger.debug(f"Insight added ({confidence}): {text[:60]}")
        return insight

    def get_insights(self, source: Optional[InsightSource] = None) -> List[Insight]:
        return [i for i in self.insights if source is None or i.source == source]

    # Topics

    def get_topic(self, label: str) -> Optional[Topic]:
        for topic in self.topics:
            if topic.label == label:
                return topic
        return None

    def add_topic(self, label: str, priority: Level = "medium") -> Optional[Topic]:
        """Add a topic for exploration. Returns None if the label is already tracked."""
        if self.get_topic(label) is not None:
            return None

        topic = Topic(label=label, priority=priority)
        self.topics.append(topic)
        self._touch()
        logger.debug(f"Topic added: {label} ({priority})")
        return topic

    def update_topic_status(self, label: str, status: TopicStatus) -> bool:
        topic = self.get_topic(label)
        if topic is None:
            return False

        topic.status = status
        topic.last_updated = datetime.now()
        self._touch()
        return True

    def get_topics(
        self, status: Optional[TopicStatus] = None, priority: Optional[Level] = None
    ) -> List[Topic]:
        return [
            t
            for t in self.topics
            if (status is None or t.status == status)
            and (priority is None or t.priority == priority)
        ]

    # Contradictions

    def has_contradiction(self, statement_a: str, statement_b: str) -> bool:
        return any(
            c.statement_a == statement_a and c.statement_b == statement_b
            for c in self.contradictions
        )

    def flag_contradiction(
        self, statement_a: str, statement_b: str, description: Optional[str] = None
    ) -> Optional[Contradiction]:
        """Record a contradiction. Returns None if this pair is already recorded."""
        if self.has_contradiction(statement_a, statement_b):
            return None

        contradiction = Contradiction(
            statement_a=statement_a, statement_b=statement_b, description=description
        )
        self.contradictions.append(contradiction)
        self._touch()
        logger.info(f"Contradiction flagged: {description or 'unspecified'}")
        return contradiction

    def resolve_contradiction(self, index: int, resolution: str) -> bool:
        if index < 0 or index >= len(self.contradictions):
            logger.warning(f"Cannot resolve contradiction {index}: out of range")
            return False

        contradiction = self.contradictions[index]
        contradiction.status = "resolved"
        contradiction.resolution = resolution
        contradiction.resolved_at = datetime.now()
        self._touch()
        return True

    def get_contradictions(
        self, status: Optional[ContradictionStatus] = None
    ) -> List[Contradiction]:
        return [c for c in self.contradictions if status is None or c.status == status]

    # Export

    def summary(self) -> Dict[str, Any]:
        return {
            "insight_count": len(self.insights),
            "pending_topics": len(self.get_topics(status="pending")),
            "unresolved_contradictions": len(self.get_contradictions(status="unresolved")),
            "last_updated": self.last_updated.isoformat(),
        }

    def export(self) -> Dict[str, Any]:
        """Plain, JSON-compatible snapshot of the state."""
        return self.model_dump(mode="json")

    @classmethod
    def from_export(cls, data: Dict[str, Any]) -> "ConversationState":
        return cls.model_validate(data)
