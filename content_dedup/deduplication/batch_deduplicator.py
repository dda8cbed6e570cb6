"""Cross-source duplicate removal within one fetched batch."""

import logging
from typing import List

from ..models import Article
from .similarity import SimilarityEngine

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE_PRIORITY = 999
TITLE_SIMILARITY_THRESHOLD = 0.6


class SourcePriorityDeduplicator:
    """Drop same-story articles from different outlets, keeping the preferred source."""

    def __init__(self, similarity: SimilarityEngine, source_priority: dict[str, int]):
        """Initialize batch deduplicator.

        Args:
            similarity: Similarity engine (title similarity and extractors)
            source_priority: Source label -> priority, lower number wins
        """
        self.similarity = similarity
        self.source_priority = source_priority

    def priority(self, source: str) -> int:
        return self.source_priority.get(source, UNKNOWN_SOURCE_PRIORITY)

    def is_same_story(self, article: Article, existing: Article) -> bool:
        """Project + event overlap, two shared projects, or close titles."""
        extractors = self.similarity.extractors

        existing_projects = set(extractors.projects.extract(existing.entity_text))
        project_overlap = sum(
            1 for name in extractors.projects.extract(article.entity_text)
            if name in existing_projects
        )

        existing_events = set(extractors.events.extract(existing.entity_text))
        has_event_overlap = any(
            event in existing_events for event in extractors.events.extract(article.entity_text)
        )

        title_similarity = self.similarity.calculate_title_similarity(article.title, existing.title)

        return (
            (project_overlap > 0 and has_event_overlap)
            or project_overlap >= 2
            or title_similarity > TITLE_SIMILARITY_THRESHOLD
        )

    def deduplicate(self, articles: List[Article]) -> List[Article]:
        """
        Remove cross-source duplicates from a batch.

        When two articles tell the same story, the one from the higher
        priority source takes the earlier article's position. Ties keep the
        earlier article.

        Returns:
            Deduplicated list in input order
        """
        unique_articles: List[Article] = []

        for article in articles:
            for index, existing in enumerate(unique_articles):
                if not self.is_same_story(article, existing):
                    continue

                if self.priority(article.source) < self.priority(existing.source):
                    logger.info(
                        f"Cross-source duplicate: keeping '{article.title[:60]}' ({article.source}) "
                        f"over ({existing.source})"
                    )
                    unique_articles[index] = article
                else:
                    logger.info(
                        f"Cross-source duplicate: keeping '{existing.title[:60]}' ({existing.source}) "
                        f"over ({article.source})"
                    )
                break
            else:
                unique_articles.append(article)

        removed = len(articles) - len(unique_articles)
        if removed > 0:
            logger.info(f"Batch deduplication: {len(articles)} → {len(unique_articles)} ({removed} duplicates removed)")

        return unique_articles
