"""
Rule-based conversation analysis.

Extracts topics, insights and contradictions from user messages with fixed
regex tables. No model calls: the output is cheap, deterministic and easy
to explain.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from proposal_copilot.dialogue.state import ConversationState, Level
from proposal_copilot.models import DialogueMessage
from proposal_copilot.utils.text import fingerprint, split_sentences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicRule:
    pattern: re.Pattern
    label: str
    priority: Level


@dataclass(frozen=True)
class InsightRule:
    pattern: re.Pattern
    confidence: Level


@dataclass(frozen=True)
class ContradictionRule:
    """Two patterns that contradict each other when said in different messages."""

    first: re.Pattern
    second: re.Pattern
    description: str


TOPIC_RULES: Tuple[TopicRule, ...] = (
    TopicRule(re.compile(r"budget|allocation|funding|tokens", re.I), "Budget allocation", "high"),
    TopicRule(re.compile(r"timeline|schedule|deadline|milestones", re.I), "Project timeline", "medium"),
    TopicRule(re.compile(r"governance|voting|decision", re.I), "Governance process", "high"),
    TopicRule(re.compile(r"metrics|success|measure|outcome", re.I), "Success metrics", "medium"),
    TopicRule(re.compile(r"team|contributors|developers", re.I), "Team composition", "medium"),
    TopicRule(re.compile(r"risks|challenges|obstacles", re.I), "Risk assessment", "high"),
)

INSIGHT_RULES: Tuple[InsightRule, ...] = (
    InsightRule(re.compile(r"I (think|believe|feel) that", re.I), "medium"),
    InsightRule(re.compile(r"My goal is", re.I), "high"),
    InsightRule(re.compile(r"The (main|primary) purpose", re.I), "high"),
    InsightRule(re.compile(r"We need to", re.I), "medium"),
    InsightRule(re.compile(r"It's important to", re.I), "medium"),
)

CONTRADICTION_RULES: Tuple[ContradictionRule, ...] = (
    ContradictionRule(
        re.compile(r"allocate\s+100%", re.I),
        re.compile(r"allocate\s+(\d+)%.*(\d+)%", re.I),
        "Allocation percentage contradiction",
    ),
    ContradictionRule(
        re.compile(r"no risks", re.I),
        re.compile(r"risks? (include|are)", re.I),
        "Risk assessment contradiction",
    ),
    ContradictionRule(
        re.compile(r"team (is complete|has all)", re.I),
        re.compile(r"need (more|additional) team members", re.I),
        "Team composition contradiction",
    ),
)


def identify_topics(text: str) -> List[Tuple[str, Level]]:
    """(label, priority) for every topic rule the text matches, in table order."""
    return [(rule.label, rule.priority) for rule in TOPIC_RULES if rule.pattern.search(text)]


def extract_insights(text: str) -> List[Tuple[str, Level]]:
    """(sentence, confidence) for each sentence matching an opinion or intent pattern."""
    insights = []
    for sentence in split_sentences(text):
        for rule in INSIGHT_RULES:
            if rule.pattern.search(sentence):
                insights.append((sentence, rule.confidence))
                break
    return insights


def detect_contradictions(user_texts: Sequence[str]) -> List[Tuple[str, str, str]]:
    """
    Pairwise scan of user messages for contradicting statements.

    Returns (earlier, later, description) for each rule where one message
    matches one side and a later message matches the other, in either order.
    Quadratic in message count; histories are trimmed so this stays small.
    """
    found = []
    for i, earlier in enumerate(user_texts):
        for later in user_texts[i + 1 :]:
            for rule in CONTRADICTION_RULES:
                forward = rule.first.search(earlier) and rule.second.search(later)
                backward = rule.first.search(later) and rule.second.search(earlier)
                if forward or backward:
                    found.append((earlier, later, rule.description))
    return found


class ConversationAnalyzer:
    """Applies the rule tables to a message history and updates a ConversationState."""

    def analyze(self, messages: Iterable[DialogueMessage], state: ConversationState) -> None:
        """
        Update ``state`` from ``messages``.

        Topics and insights come only from user messages not analyzed
        before; contradictions are checked across all user messages.
        """
        user_texts = [m.content for m in messages if m.role == "user"]
        if not user_texts:
            return

        processed = set(state.processed_messages)
        new_insights = new_topics = new_contradictions = 0

        for text in user_texts:
            key = fingerprint(text)
            if key in processed:
                continue

            for sentence, confidence in extract_insights(text):
                state.add_insight(sentence, source="user", confidence=confidence)
                new_insights += 1

            for label, priority in identify_topics(text):
                if state.add_topic(label, priority) is not None:
                    new_topics += 1

            processed.add(key)
            state.processed_messages.append(key)

        for earlier, later, description in detect_contradictions(user_texts):
            if state.flag_contradiction(earlier, later, description) is not None:
                new_contradictions += 1

        logger.debug(
            f"Analyzed {len(user_texts)} user messages: +{new_insights} insights, "
            f"+{new_topics} topics, +{new_contradictions} contradictions"
        )
