"""Recent topics and cross-post cooldown tracking."""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from ..config_loader import Config
from ..exceptions import CacheUnavailable
from ..models import (
    Article,
    CrosspostRecord,
    LastCrosspost,
    RecentTopic,
    RecentTopicsSummary,
    now_ms,
)
from ..storage import CacheClient
from .similarity import SimilarityEngine

logger = logging.getLogger(__name__)

RECENT_TOPICS_KEY = "recent_topics"
CROSSPOST_KEY = "crosspost:last"

TOPIC_MATCH_WEIGHT = 0.5
KEYWORD_MATCH_WEIGHT = 0.5
ENTITY_MATCH_WEIGHT = 0.3


class RecencyTracker:
    """Bounded recent-topics list plus a single-slot last cross-post record.

    Both live in the cache; reads fail open (empty / False) and writes return
    False when the cache is unavailable.
    """

    def __init__(self, cache: CacheClient, similarity: SimilarityEngine, config: Config):
        self.cache = cache
        self.similarity = similarity
        self.config = config

    async def add_recent_topic(self, topic: str) -> bool:
        """Push a topic to the head of the recent list and refresh its TTL."""
        if not topic:
            return False

        entry = RecentTopic(
            name=topic.lower(),
            timestamp=now_ms(),
            keywords=self.similarity.key_terms(topic),
        )
        try:
            await self.cache.list_push(RECENT_TOPICS_KEY, entry.model_dump_json())
            await self.cache.list_trim(RECENT_TOPICS_KEY, 0, self.config.MAX_RECENT_TOPICS - 1)
            await self.cache.expire(RECENT_TOPICS_KEY, self.config.CACHE_TTL_SECONDS)
            return True
        except CacheUnavailable as e:
            logger.warning(f"Failed to add recent topic '{topic}': {e}")
            return False

    async def get_recent_topics(self) -> list[RecentTopic]:
        """Stored topics, newest first. Malformed entries are skipped."""
        try:
            raw_entries = await self.cache.list_range(RECENT_TOPICS_KEY, 0, -1)
        except CacheUnavailable as e:
            logger.warning(f"Could not read recent topics: {e}")
            return []

        topics = []
        for raw in raw_entries:
            try:
                topics.append(RecentTopic(**json.loads(raw)))
            except (TypeError, ValueError, ValidationError) as e:
                logger.warning(f"Skipping malformed recent topic entry: {e}")
        return topics

    async def get_recently_posted_topics(self) -> RecentTopicsSummary:
        """Topic names and every keyword appearing in at least one topic."""
        topics = await self.get_recent_topics()

        keywords = []
        seen = set()
        for topic in topics:
            for word in topic.keywords:
                if word not in seen:
                    seen.add(word)
                    keywords.append(word)

        return RecentTopicsSummary(topics=[t.name for t in topics], keywords=keywords)

    async def calculate_topic_similarity(self, article: Article) -> float:
        """
        How close an article is to recently posted topics, in [0, 1].

        Scoring:
        - 0.5 if the article topic is one of the recent topic names
        - 0.5 * fraction of the article's key terms found in recent keywords
        - 0.3 * fraction of the article's entities found in recent keywords
        """
        if article is None:
            return 0.0

        recent = await self.get_recently_posted_topics()
        recent_keywords = set(recent.keywords)
        score = 0.0

        if article.topic and article.topic.lower() in recent.topics:
            score += TOPIC_MATCH_WEIGHT

        all_keywords = self.similarity.key_terms(article.title) + self.similarity.key_terms(
            article.description
        )
        if all_keywords:
            match_count = sum(1 for word in all_keywords if word in recent_keywords)
            score += KEYWORD_MATCH_WEIGHT * (match_count / len(all_keywords))

        entity_words = [tag.split(":", 1)[1] for tag in self.similarity.entities(article)]
        if entity_words:
            entity_matches = sum(1 for word in entity_words if word in recent_keywords)
            score += ENTITY_MATCH_WEIGHT * (entity_matches / len(entity_words))

        return min(1.0, score)

    async def _load_crosspost(self) -> Optional[CrosspostRecord]:
        raw = await self.cache.get(CROSSPOST_KEY)
        if not raw:
            return None
        try:
            return CrosspostRecord(**json.loads(raw))
        except (TypeError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring malformed crosspost record: {e}")
            return None

    async def has_been_crossposted(self, content: str) -> bool:
        """True if content closely matches the last cross-post inside the window."""
        try:
            record = await self._load_crosspost()
        except CacheUnavailable as e:
            logger.warning(f"Could not check crosspost history: {e}")
            return False

        if record is None:
            return False
        if record.age_hours() > self.config.CROSSPOST_WINDOW_HOURS:
            return False

        similarity = self.similarity.calculate_similarity(content, record.content)
        return similarity > self.config.SIMILARITY_THRESHOLDS.RECENT

    async def mark_as_crossposted(self, content: str) -> bool:
        """Overwrite the single-slot last cross-post record."""
        record = CrosspostRecord(content=content, timestamp=now_ms())
        try:
            await self.cache.set(
                CROSSPOST_KEY, record.model_dump_json(), self.config.CROSSPOST_TTL_SECONDS
            )
            return True
        except CacheUnavailable as e:
            logger.warning(f"Failed to mark content as crossposted: {e}")
            return False

    async def get_last_crossposted_content(self) -> Optional[LastCrosspost]:
        try:
            record = await self._load_crosspost()
        except CacheUnavailable as e:
            logger.warning(f"Could not read last crosspost: {e}")
            return None

        if record is None:
            return None
        return LastCrosspost(
            content=record.content,
            timestamp=record.timestamp,
            hours_ago=record.age_hours(),
        )
