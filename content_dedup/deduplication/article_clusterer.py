"""Batch clustering of articles that describe the same story."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..models import Article
from .similarity import SimilarityEngine

logger = logging.getLogger(__name__)

TITLE_SIMILARITY_THRESHOLD = 0.5


@dataclass
class ClusterSignals:
    """Pairwise signals between a candidate article and a cluster reference."""

    topic_match: bool
    entity_overlap: int
    title_similarity: float
    project_overlap: int
    event_overlap: bool

    def is_same_story(self) -> bool:
        """Any of the clustering rules fires."""
        return (
            (self.topic_match and self.entity_overlap >= 1)
            or self.entity_overlap >= 2
            or self.title_similarity > TITLE_SIMILARITY_THRESHOLD
            or (self.project_overlap > 0 and self.event_overlap)
            or self.project_overlap >= 2
        )

    def strength(self) -> float:
        """Rough ordering key used by BestMatchClusterer."""
        return (
            self.entity_overlap
            + self.project_overlap
            + self.title_similarity * 2
            + (1 if self.topic_match else 0)
            + (0.5 if self.event_overlap else 0)
        )


class ClusteringStrategy(ABC):
    """Partition a batch of unique articles into same-story clusters.

    The first article of each cluster is its reference; candidates are only
    compared against references.
    """

    def __init__(self, similarity: SimilarityEngine):
        self.similarity = similarity

    def compare(self, article: Article, reference: Article) -> ClusterSignals:
        """Compute all clustering signals for one pair."""
        extractors = self.similarity.extractors

        topic_match = bool(
            article.topic
            and reference.topic
            and article.topic.lower() == reference.topic.lower()
        )

        article_entities = extractors.entities.extract(article.entity_text)
        reference_entities = set(extractors.entities.extract(reference.entity_text))
        entity_overlap = sum(1 for tag in article_entities if tag in reference_entities)

        title_similarity = self.similarity.calculate_title_similarity(
            article.title, reference.title
        )

        article_projects = extractors.projects.extract(article.entity_text)
        reference_projects = set(extractors.projects.extract(reference.entity_text))
        project_overlap = sum(1 for name in article_projects if name in reference_projects)

        reference_events = set(extractors.events.extract(reference.entity_text))
        event_overlap = any(
            event in reference_events for event in extractors.events.extract(article.entity_text)
        )

        return ClusterSignals(
            topic_match=topic_match,
            entity_overlap=entity_overlap,
            title_similarity=title_similarity,
            project_overlap=project_overlap,
            event_overlap=event_overlap,
        )

    @abstractmethod
    def cluster(self, articles: List[Article]) -> List[List[Article]]:
        """Return clusters in creation order."""


class FirstMatchClusterer(ClusteringStrategy):
    """Assign each article to the first cluster whose reference matches.

    Early clusters win when an article could fit several; this is the
    default behaviour.
    """

    def cluster(self, articles: List[Article]) -> List[List[Article]]:
        clusters: List[List[Article]] = []

        for article in articles:
            for cluster in clusters:
                signals = self.compare(article, cluster[0])
                if signals.is_same_story():
                    logger.debug(
                        f"Clustered '{article.title[:50]}' with '{cluster[0].title[:50]}' "
                        f"({signals})"
                    )
                    cluster.append(article)
                    break
            else:
                clusters.append([article])

        logger.info(f"Clustered {len(articles)} articles into {len(clusters)} stories")
        return clusters


class BestMatchClusterer(ClusteringStrategy):
    """Assign each article to the matching cluster with the strongest signals."""

    def cluster(self, articles: List[Article]) -> List[List[Article]]:
        clusters: List[List[Article]] = []

        for article in articles:
            best_cluster = None
            best_strength = 0.0
            for cluster in clusters:
                signals = self.compare(article, cluster[0])
                if signals.is_same_story() and signals.strength() > best_strength:
                    best_cluster = cluster
                    best_strength = signals.strength()

            if best_cluster is not None:
                best_cluster.append(article)
            else:
                clusters.append([article])

        logger.info(f"Clustered {len(articles)} articles into {len(clusters)} stories (best match)")
        return clusters


def select_representatives(
    clusters: List[List[Article]],
    key: Optional[Callable[[Article], float]] = None,
) -> List[Article]:
    """
    Pick one article per cluster.

    Default key is importance_score (missing counts as 0); ties keep the
    earliest article.
    """
    if key is None:
        def key(article: Article) -> float:
            return article.importance_score or 0

    representatives = []
    for cluster in clusters:
        if not cluster:
            continue
        best = cluster[0]
        for candidate in cluster[1:]:
            if key(candidate) > key(best):
                best = candidate
        representatives.append(best)
    return representatives
