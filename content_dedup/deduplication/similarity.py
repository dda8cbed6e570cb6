"""Multi-signal text similarity.

calculate_similarity blends four sub-scores over stopword-filtered terms:

    0.2 * Jaccard(term sets)
  + 0.2 * cosine(term frequency vectors)
  + 0.2 * sequence overlap (0.6 * Jaccard of 2-grams + 0.4 * Jaccard of 3-grams)
  + 0.4 * exact phrase overlap (4- and 3-word phrases found verbatim)

Every sub-score is in [0, 1] and is 0 when either side is empty.
"""

import math
from collections import Counter
from typing import Any, Iterable, Optional

from ..config_loader import CombinedWeights, SimilarityThresholds
from ..extraction import VocabularyExtractors
from ..models import Article, CachedContentRecord
from ..utils.text import extract_key_terms, normalize_text, tokenize_words

JACCARD_WEIGHT = 0.2
FREQUENCY_WEIGHT = 0.2
SEQUENCE_WEIGHT = 0.2
PHRASE_WEIGHT = 0.4

BIGRAM_WEIGHT = 0.6
TRIGRAM_WEIGHT = 0.4

PHRASE_LENGTHS = (4, 3)


def jaccard(set1: set, set2: set) -> float:
    """|A ∩ B| / |A ∪ B|, 0 if either set is empty."""
    if not set1 or not set2:
        return 0.0
    return len(set1 & set2) / len(set1 | set2)


def term_frequency(terms: Iterable[str]) -> Counter:
    return Counter(terms)


def cosine_similarity(freq1: Counter, freq2: Counter) -> float:
    """Cosine of two term frequency vectors."""
    if not freq1 or not freq2:
        return 0.0

    dot_product = 0.0
    norm1 = 0.0
    norm2 = 0.0
    # Sorted iteration keeps float summation order identical for (a, b) and (b, a)
    for term in sorted(set(freq1) | set(freq2)):
        f1 = freq1.get(term, 0)
        f2 = freq2.get(term, 0)
        dot_product += f1 * f2
        norm1 += f1 * f1
        norm2 += f2 * f2

    if norm1 == 0 or norm2 == 0:
        return 0.0
    return dot_product / (math.sqrt(norm1) * math.sqrt(norm2))


def ngrams(terms: list[str], n: int) -> set[str]:
    """Set of contiguous n-term sequences."""
    return {" ".join(terms[i:i + n]) for i in range(len(terms) - n + 1)}


def sequence_similarity(terms1: list[str], terms2: list[str]) -> float:
    """Weighted Jaccard of 2-gram and 3-gram sets."""
    if not terms1 or not terms2:
        return 0.0

    sim2 = jaccard(ngrams(terms1, 2), ngrams(terms2, 2))
    sim3 = jaccard(ngrams(terms1, 3), ngrams(terms2, 3))
    return sim2 * BIGRAM_WEIGHT + sim3 * TRIGRAM_WEIGHT


def _phrase_overlap(words1: list[str], text2: str, min_length: int) -> float:
    match_count = 0
    for phrase_length in PHRASE_LENGTHS:
        # Each distinct phrase counts once
        for phrase in ngrams(words1, phrase_length):
            if phrase in text2:
                match_count += phrase_length
    return min(1.0, match_count / (min_length * 2))


def phrase_match_similarity(text1: str, text2: str) -> float:
    """Exact phrase overlap of two normalized texts.

    Distinct phrases of 4 then 3 words from one text are looked up verbatim in the
    other, weighted by length and normalized by 2 * min(word counts). The
    lookup runs in both directions and is averaged so the score is symmetric.
    """
    words1 = tokenize_words(text1)
    words2 = tokenize_words(text2)
    min_length = min(len(words1), len(words2))
    if min_length == 0:
        return 0.0

    forward = _phrase_overlap(words1, text2, min_length)
    backward = _phrase_overlap(words2, text1, min_length)
    return (forward + backward) / 2


def get_similarity_threshold(hours_ago: float, thresholds: SimilarityThresholds) -> float:
    """Threshold for a cached record of the given age; tightens with age."""
    if hours_ago < 6:
        return thresholds.RECENT
    if hours_ago < 12:
        return thresholds.MEDIUM
    if hours_ago < 24:
        return thresholds.OLD
    return thresholds.VERY_OLD


class SimilarityEngine:
    """Text, title and entity similarity bound to one vocabulary set."""

    def __init__(self, extractors: VocabularyExtractors):
        self.extractors = extractors
        self.stopwords = extractors.stopwords

    def key_terms(self, text: Optional[str]) -> list[str]:
        return extract_key_terms(text, self.stopwords)

    def calculate_similarity(self, content1: Optional[str], content2: Optional[str]) -> float:
        """Composite similarity of two texts in [0, 1]."""
        if not content1 or not content2:
            return 0.0

        normalized1 = normalize_text(content1)
        normalized2 = normalize_text(content2)

        terms1 = self.key_terms(normalized1)
        terms2 = self.key_terms(normalized2)
        if not terms1 or not terms2:
            return 0.0

        jaccard_similarity = jaccard(set(terms1), set(terms2))
        freq_similarity = cosine_similarity(term_frequency(terms1), term_frequency(terms2))
        seq_similarity = sequence_similarity(terms1, terms2)
        phrase_similarity = phrase_match_similarity(normalized1, normalized2)

        score = (
            jaccard_similarity * JACCARD_WEIGHT
            + freq_similarity * FREQUENCY_WEIGHT
            + seq_similarity * SEQUENCE_WEIGHT
            + phrase_similarity * PHRASE_WEIGHT
        )
        return max(0.0, min(1.0, score))

    def entities(self, item: Any) -> list[str]:
        """Entity tags of an article-like object (title + description)."""
        text = f"{getattr(item, 'title', '') or ''} {getattr(item, 'description', '') or ''}"
        return self.extractors.entities.extract(text)

    def calculate_entity_similarity(self, item1: Any, item2: Any) -> float:
        """Jaccard of the entity tag sets of two article-like objects."""
        return jaccard(set(self.entities(item1)), set(self.entities(item2)))

    def calculate_title_similarity(self, title1: Optional[str], title2: Optional[str]) -> float:
        """Jaccard of the key-term sets of two titles."""
        if not title1 or not title2:
            return 0.0
        return jaccard(set(self.key_terms(title1)), set(self.key_terms(title2)))

    def combined_similarity(
        self,
        article: Article,
        candidate_text: Optional[str],
        record: CachedContentRecord,
        weights: CombinedWeights,
    ) -> tuple[float, float, float, float]:
        """Score an incoming article against one cached record.

        Returns:
            (combined, title_similarity, entity_similarity, content_similarity)
        """
        title_similarity = self.calculate_title_similarity(article.title, record.title)
        # Cached records keep the generated post in place of a description
        entity_similarity = self.calculate_entity_similarity(
            article,
            Article(title=record.title, description=record.content or ""),
        )
        content_similarity = self.calculate_similarity(candidate_text, record.content)

        combined = (
            title_similarity * weights.TITLE
            + entity_similarity * weights.ENTITY
            + content_similarity * weights.CONTENT
        )
        return combined, title_similarity, entity_similarity, content_similarity
