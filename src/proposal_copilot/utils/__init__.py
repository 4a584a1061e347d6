"""Utility functions for text handling."""

from proposal_copilot.utils.text import (
    extract_key_terms,
    fingerprint,
    normalize_query,
    split_sentences,
    strip_markup,
)

__all__ = [
    "extract_key_terms",
    "fingerprint",
    "normalize_query",
    "split_sentences",
    "strip_markup",
]
