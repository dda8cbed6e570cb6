"""Tests for text utilities."""

import pytest

from content_dedup.utils.text import (
    extract_key_terms,
    normalize_for_fingerprint,
    normalize_keep_hyphens,
    normalize_text,
)

STOPWORDS = {"the", "and", "is", "over", "this"}


def test_normalize_text():
    assert normalize_text("Bitcoin's price: $50,000!") == "bitcoin s price 50 000"


@pytest.mark.parametrize("text", [
    "Bitcoin's price: $50,000!",
    "  Multiple   spaces\tand\nnewlines  ",
    "SEC -- approves (spot) ETF",
])
def test_normalize_text_idempotent(text):
    once = normalize_text(text)
    assert normalize_text(once) == once


@pytest.mark.parametrize("text", [None, "", "   "])
def test_normalize_text_empty(text):
    assert normalize_text(text) == ""


def test_normalize_keep_hyphens():
    assert normalize_keep_hyphens("Layer-2 launch!") == "layer-2 launch"


def test_normalize_for_fingerprint_strips_urls_and_punctuation():
    assert normalize_for_fingerprint("Read https://example.com/a now! 50,000") == "read now 50000"


def test_extract_key_terms_filters_short_words_and_stopwords():
    text = "The quick brown fox jumps over the lazy dog. This is a test about blockchain."
    terms = extract_key_terms(text, STOPWORDS)

    assert "quick" in terms
    assert "blockchain" in terms
    assert "the" not in terms
    assert "over" not in terms
    assert "is" not in terms
    assert all(len(term) > 2 for term in terms)


def test_extract_key_terms_keeps_order_and_repeats():
    assert extract_key_terms("bitcoin rally bitcoin", STOPWORDS) == ["bitcoin", "rally", "bitcoin"]


def test_extract_key_terms_empty():
    assert extract_key_terms(None, STOPWORDS) == []
    assert extract_key_terms("the and is", STOPWORDS) == []
