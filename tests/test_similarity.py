"""Tests for the similarity engine."""

import pytest

from content_dedup.config_loader import CombinedWeights, SimilarityThresholds
from content_dedup.deduplication import get_similarity_threshold
from content_dedup.deduplication.similarity import (
    cosine_similarity,
    jaccard,
    phrase_match_similarity,
    term_frequency,
)
from content_dedup.models import Article, CachedContentRecord, now_ms

TEXTS = [
    "Bitcoin price reaches $50,000 milestone as institutional investors drive market growth",
    "Bitcoin price hits $50,000 milestone as institutional investors boost market",
    "Ethereum network upgrade improves scalability and reduces gas fees",
    "SEC approves BlackRock spot Bitcoin ETF application after review",
    "Kraken opens office in Japan",
]


def test_similar_content_scores_high(similarity):
    score = similarity.calculate_similarity(TEXTS[0], TEXTS[1])

    assert score > 0.15


def test_different_content_scores_low(similarity):
    score = similarity.calculate_similarity(
        "Bitcoin price reaches new all-time high as demand increases",
        "Ethereum network upgrade improves scalability and reduces gas fees",
    )

    assert score < 0.1


def test_identical_content_scores_one(similarity):
    assert similarity.calculate_similarity(TEXTS[3], TEXTS[3]) == pytest.approx(1.0)


@pytest.mark.parametrize("text1", TEXTS)
@pytest.mark.parametrize("text2", TEXTS)
def test_similarity_bounded_and_symmetric(similarity, text1, text2):
    forward = similarity.calculate_similarity(text1, text2)
    backward = similarity.calculate_similarity(text2, text1)

    assert 0.0 <= forward <= 1.0
    assert forward == backward


@pytest.mark.parametrize("text1, text2", [
    ("", "Bitcoin price rises"),
    ("Bitcoin price rises", None),
    ("the and is", "Bitcoin price rises"),
])
def test_similarity_empty_is_zero(similarity, text1, text2):
    assert similarity.calculate_similarity(text1, text2) == 0.0


def test_title_similarity(similarity):
    assert similarity.calculate_title_similarity(
        "Aave governance vote passes", "Aave governance vote passes quickly"
    ) == pytest.approx(0.8)
    assert similarity.calculate_title_similarity("The and", "Bitcoin rally") == 0.0
    assert similarity.calculate_title_similarity(None, "Bitcoin rally") == 0.0


def test_entity_similarity(similarity):
    article1 = Article(title="Kraken opens office in Japan")
    article2 = Article(title="Kraken opens office in Singapore")
    no_entities = Article(title="Completely different headline here")

    assert similarity.calculate_entity_similarity(article1, article2) == pytest.approx(1 / 3)
    assert similarity.calculate_entity_similarity(article1, no_entities) == 0.0


def test_combined_similarity(similarity):
    article = Article(title="Kraken opens office in Japan")
    record = CachedContentRecord(
        title="Kraken opens office in Japan",
        content="Kraken Singapore",
        timestamp=now_ms(),
    )

    combined, title_sim, entity_sim, content_sim = similarity.combined_similarity(
        article, "", record, CombinedWeights()
    )

    assert title_sim == pytest.approx(1.0)
    assert entity_sim == pytest.approx(2 / 3)
    assert content_sim == 0.0
    assert combined == pytest.approx(0.6)


@pytest.mark.parametrize("hours, expected", [
    (0, 0.5),
    (5.9, 0.5),
    (6, 0.55),
    (11.9, 0.55),
    (12, 0.6),
    (23.9, 0.6),
    (24, 0.65),
    (100, 0.65),
])
def test_similarity_threshold_by_age(hours, expected):
    assert get_similarity_threshold(hours, SimilarityThresholds()) == expected


def test_jaccard_and_cosine_edge_cases():
    assert jaccard(set(), {"a"}) == 0.0
    assert jaccard({"a", "b"}, {"a", "b"}) == 1.0
    assert cosine_similarity(term_frequency([]), term_frequency(["a"])) == 0.0
    assert cosine_similarity(term_frequency(["a", "b"]), term_frequency(["a", "b"])) == pytest.approx(1.0)


def test_phrase_match_is_clamped():
    text = "bitcoin price reaches new high bitcoin price reaches new high"

    assert phrase_match_similarity(text, text) == 1.0
    assert phrase_match_similarity("", text) == 0.0


IDENTITY_TEXTS = [
    "Bitcoin price rises",
    "Bitcoin price rises bitcoin price rises",
    "Bitcoin price rises again",
    "Bitcoin price rises as Bitcoin price rises",
    TEXTS[0],
    TEXTS[3],
]


@pytest.mark.parametrize("text", IDENTITY_TEXTS)
def test_identity_scores_highest(similarity, text):
    self_score = similarity.calculate_similarity(text, text)

    for other in IDENTITY_TEXTS:
        assert self_score >= similarity.calculate_similarity(text, other)


def test_repeated_text_does_not_outscore_itself(similarity):
    text = "Bitcoin price rises"

    assert similarity.calculate_similarity(text, text) == pytest.approx(0.8)
    assert similarity.calculate_similarity(text, f"{text} {text}") < 0.8


def test_repeated_phrases_count_once():
    assert phrase_match_similarity("bitcoin price rises", "bitcoin price rises bitcoin price rises") == 0.5
