"""Text processing utilities."""

import re
from typing import Iterable, Optional

_NON_WORD = re.compile(r"[^\w\s]", re.ASCII)
_NON_WORD_KEEP_HYPHEN = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")
_URL = re.compile(r"https?://\S+")


def normalize_text(text: Optional[str]) -> str:
    """Normalize text: lowercase, punctuation to spaces, collapse whitespace."""
    if not text:
        return ""

    text = text.lower()
    text = _NON_WORD.sub(" ", text)
    text = _WHITESPACE.sub(" ", text)

    return text.strip()


def normalize_keep_hyphens(text: Optional[str]) -> str:
    """Like normalize_text but keeps hyphens (project and event matching)."""
    if not text:
        return ""

    text = text.lower()
    text = _NON_WORD_KEEP_HYPHEN.sub(" ", text)
    text = _WHITESPACE.sub(" ", text)

    return text.strip()


def normalize_for_fingerprint(text: Optional[str]) -> str:
    """Normalize text for hashing: lowercase, strip URLs and punctuation."""
    if not text:
        return ""

    text = text.lower()
    text = _WHITESPACE.sub(" ", text)
    text = _URL.sub("", text)
    # Punctuation is dropped, not spaced, so "50,000" and "50000" hash alike
    text = _NON_WORD.sub("", text)
    text = _WHITESPACE.sub(" ", text)

    return text.strip()


def tokenize_words(normalized: str) -> list[str]:
    """Split an already normalized string into words."""
    if not normalized:
        return []
    return normalized.split(" ")


def extract_key_terms(text: Optional[str], stopwords: Iterable[str]) -> list[str]:
    """Extract key terms: words longer than 2 chars that are not stopwords.

    Order is preserved and repeated terms are kept (term frequency needs them).
    """
    normalized = normalize_text(text)
    if not normalized:
        return []

    stopword_set = stopwords if isinstance(stopwords, (set, frozenset)) else set(stopwords)
    return [
        word for word in tokenize_words(normalized)
        if len(word) > 2 and word not in stopword_set
    ]
