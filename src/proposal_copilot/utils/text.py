"""Text helpers shared by retrieval, prompting and conversation analysis."""

import hashlib
import re
from typing import List

STOP_WORDS = frozenset(
    """
    the and that this with from have what when where which would could should
    about there their they been because does into through during before after
    above below between under over
    """.split()
)

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_MARKUP_TAG = re.compile(r"</?[^>]+(>|$)")
_HTML_ENTITY = re.compile(r"&[a-z]+;")
_SENTENCE_END = re.compile(r"[.!?]+")


def normalize_query(query: str) -> str:
    """Lower-case, replace punctuation with spaces and collapse whitespace."""
    text = _NON_WORD.sub(" ", query.lower())
    return _WHITESPACE.sub(" ", text).strip()


def extract_key_terms(normalized_query: str, min_length: int = 4) -> str:
    """
    Keep only content words of a normalized query.

    Words shorter than ``min_length`` and common stop words are dropped.
    """
    return " ".join(
        word
        for word in normalized_query.split()
        if len(word) >= min_length and word not in STOP_WORDS
    )


def strip_markup(text: str) -> str:
    """Remove HTML tags and entities and collapse whitespace."""
    text = _MARKUP_TAG.sub(" ", text)
    text = _HTML_ENTITY.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in _SENTENCE_END.split(text) if s.strip()]


def fingerprint(text: str) -> str:
    """Stable short hash used to remember which messages were analyzed."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:16]
