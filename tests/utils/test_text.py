"""
Tests for text helpers.
"""

import pytest

from proposal_copilot.utils.text import (
    extract_key_terms,
    fingerprint,
    normalize_query,
    split_sentences,
    strip_markup,
)


@pytest.mark.parametrize(
    "query,expected",
    [
        ("How do Staking rewards WORK?", "how do staking rewards work"),
        ("  treasury---allocation!!  ", "treasury allocation"),
        ("?!", ""),
    ],
)
def test_normalize_query(query, expected):
    assert normalize_query(query) == expected


def test_extract_key_terms_drops_short_and_stop_words():
    assert extract_key_terms("what would the treasury do about grant funding") == (
        "treasury grant funding"
    )


def test_extract_key_terms_empty():
    assert extract_key_terms("is it the one") == ""


def test_strip_markup():
    html = '<div class="post"><p>Stake&nbsp;now</p>\n<a href="/x">link</a></div>'

    assert strip_markup(html) == "Stake now link"


def test_split_sentences():
    assert split_sentences("One. Two!! Three? ") == ["One", "Two", "Three"]


def test_fingerprint_is_stable():
    assert fingerprint("hello") == fingerprint("hello")
    assert fingerprint("hello") != fingerprint("hello ")
    assert len(fingerprint("hello")) == 16
