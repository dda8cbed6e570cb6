"""Content deduplication service backed by the TTL cache.

Check order for an incoming article (cheapest first, first hit wins):

1. Exact: content:<content fingerprint> exists
2. Semantic: semantic:<semantic fingerprint> exists
3. In-flight (optional): another worker holds intent:<content fingerprint>
   or, for articles with entities, intent:semantic:<semantic fingerprint>
4. Fuzzy: combined similarity against every record in global:articles,
   with a threshold that depends on the cached record's age

Cache failures never propagate: reads fail open ("not a duplicate") and
writes return False.
"""

import logging
from typing import List, Optional

from ..config_loader import Config, load_vocabularies
from ..exceptions import CacheUnavailable, MalformedCachedRecord
from ..extraction import Vocabularies, VocabularyExtractors
from ..models import (
    Article,
    CachedContentRecord,
    DedupResult,
    LastCrosspost,
    MatchKind,
    RecentTopicsSummary,
    now_ms,
)
from ..monitoring import DedupMonitor
from ..storage import CacheClient
from .article_clusterer import ClusteringStrategy, FirstMatchClusterer
from .batch_deduplicator import SourcePriorityDeduplicator
from .fingerprint import FingerprintGenerator
from .recency_tracker import CROSSPOST_KEY, RECENT_TOPICS_KEY, RecencyTracker
from .similarity import SimilarityEngine, get_similarity_threshold

logger = logging.getLogger(__name__)

GLOBAL_ARTICLES_KEY = "global:articles"
CONTENT_PREFIX = "content:"
SEMANTIC_PREFIX = "semantic:"
SOURCE_PREFIX = "source:"
INTENT_PREFIX = "intent:"


def content_key(fingerprint: str) -> str:
    return f"{CONTENT_PREFIX}{fingerprint}"


def semantic_key(fingerprint: str) -> str:
    return f"{SEMANTIC_PREFIX}{fingerprint}"


def source_key(source: str) -> str:
    return f"{SOURCE_PREFIX}{source}"


def intent_key(fingerprint: str) -> str:
    return f"{INTENT_PREFIX}{fingerprint}"


def semantic_intent_key(fingerprint: str) -> str:
    return f"{INTENT_PREFIX}{SEMANTIC_PREFIX}{fingerprint}"


class ContentDeduplicator:
    """Decide whether an article (or generated post) was already processed."""

    def __init__(
        self,
        cache: CacheClient,
        config: Optional[Config] = None,
        vocabularies: Optional[Vocabularies] = None,
        clusterer: Optional[ClusteringStrategy] = None,
        monitor: Optional[DedupMonitor] = None,
    ):
        """Initialize deduplicator.

        Args:
            cache: Connected cache client
            config: Engine configuration (defaults if None)
            vocabularies: Extractor vocabularies (loaded from config if None)
            clusterer: Clustering strategy (FirstMatchClusterer if None)
            monitor: Decision counters (new DedupMonitor if None)
        """
        self.cache = cache
        self.config = config or Config()

        if vocabularies is None:
            vocabularies = Vocabularies.from_dict(load_vocabularies(self.config))
        self.extractors = VocabularyExtractors(vocabularies)

        self.similarity = SimilarityEngine(self.extractors)
        self.fingerprints = FingerprintGenerator(self.extractors.entities)
        self.tracker = RecencyTracker(cache, self.similarity, self.config)
        self.clusterer = clusterer or FirstMatchClusterer(self.similarity)
        self.batch_deduplicator = SourcePriorityDeduplicator(
            self.similarity, self.config.SOURCE_PRIORITY
        )
        self.monitor = monitor or DedupMonitor()

    @classmethod
    def from_config(cls, config: Config) -> "ContentDeduplicator":
        """Build a deduplicator with its own cache connection."""
        return cls(CacheClient.from_settings(config.CACHE), config)

    def _has_entities(self, article: Article) -> bool:
        return bool(self.extractors.entities.extract(article.entity_text))

    async def _exists(self, key: str, step: str) -> bool:
        try:
            return await self.cache.exists(key)
        except CacheUnavailable as e:
            logger.warning(f"{step} check skipped, cache unavailable: {e}")
            self.monitor.record_cache_error(step)
            return False

    def _intent_keys(self, article: Article) -> List[str]:
        """In-flight markers of an article: content, plus semantic when it has entities."""
        fingerprint, semantic_fingerprint = self.fingerprints.both(article)
        keys = [intent_key(fingerprint)]
        if self._has_entities(article):
            keys.append(semantic_intent_key(semantic_fingerprint))
        return keys

    async def _claim_intent(self, article: Article) -> bool:
        """SET NX every marker; on a collision undo the ones already claimed."""
        claimed = []
        for key in self._intent_keys(article):
            if not await self.cache.set_if_absent(key, str(now_ms()), self.config.INTENT_TTL_SECONDS):
                await self.cache.delete(*claimed)
                return False
            claimed.append(key)
        return True

    async def check(self, article: Article, candidate_text: Optional[str] = None) -> DedupResult:
        """
        Run the full dedup check for one article.

        Args:
            article: Incoming article
            candidate_text: Generated post compared against cached content.
                None for pre-generation checks; content similarity is then 0
                and only title and entity signals count.

        Returns:
            DedupResult with the deciding step and scores
        """
        result = await self._check(article, candidate_text)
        self.monitor.record_decision(result.kind)
        return result

    async def _check(self, article: Article, candidate_text: Optional[str]) -> DedupResult:
        fingerprint, semantic_fingerprint = self.fingerprints.both(article)
        base = {"content_fingerprint": fingerprint, "semantic_fingerprint": semantic_fingerprint}

        if await self._exists(content_key(fingerprint), "exact"):
            logger.info(f"Found exact content match in cache: '{article.title[:60]}'")
            return DedupResult(kind=MatchKind.EXACT, score=1.0, matched_fingerprint=fingerprint, **base)

        # An empty entity set hashes the same for every article; it is not a signal
        if self._has_entities(article):
            if await self._exists(semantic_key(semantic_fingerprint), "semantic"):
                logger.info(f"Found semantic match in cache: '{article.title[:60]}'")
                return DedupResult(kind=MatchKind.SEMANTIC, score=1.0, **base)

        claimed_intent = False
        if self.config.ENABLE_INTENT_MARKERS:
            try:
                claimed_intent = await self._claim_intent(article)
            except CacheUnavailable as e:
                logger.warning(f"intent check skipped, cache unavailable: {e}")
                self.monitor.record_cache_error("intent")
            else:
                if not claimed_intent:
                    logger.info(f"Article already being processed elsewhere: '{article.title[:60]}'")
                    return DedupResult(kind=MatchKind.IN_FLIGHT, **base)

        result = await self._scan_global_index(article, candidate_text, base)

        if claimed_intent and result.is_duplicate:
            await self.release_intent(article)
        return result

    async def _scan_global_index(
        self, article: Article, candidate_text: Optional[str], base: dict
    ) -> DedupResult:
        try:
            fingerprints = await self.cache.set_members(GLOBAL_ARTICLES_KEY)
        except CacheUnavailable as e:
            logger.warning(f"Global scan skipped, cache unavailable: {e}")
            self.monitor.record_cache_error("scan")
            return DedupResult(kind=MatchKind.UNIQUE, **base)

        thresholds = self.config.SIMILARITY_THRESHOLDS
        weights = self.config.COMBINED_WEIGHTS
        now = now_ms()

        logger.info(f"Checking article against {len(fingerprints)} cached articles")

        best_score = 0.0
        best_title = None
        expired = []

        for fp in sorted(fingerprints):
            key = content_key(fp)
            try:
                raw = await self.cache.get(key)
            except CacheUnavailable as e:
                logger.debug(f"Skipping {key}: {e}")
                self.monitor.record_cache_error("scan_get")
                continue

            if raw is None:
                expired.append(fp)
                continue

            try:
                record = CachedContentRecord.from_json(raw, key)
            except MalformedCachedRecord as e:
                logger.warning(str(e))
                self.monitor.record_malformed()
                continue

            combined, title_sim, entity_sim, content_sim = self.similarity.combined_similarity(
                article, candidate_text, record, weights
            )
            threshold = get_similarity_threshold(record.age_hours(now), thresholds)

            if combined > threshold:
                logger.info(
                    f"Found similar content ({combined:.0%} combined, threshold {threshold:.0%}): "
                    f"title {title_sim:.0%}, entity {entity_sim:.0%}, content {content_sim:.0%}; "
                    f"similar to '{record.title[:60]}'"
                )
                await self._forget(expired)
                return DedupResult(
                    kind=MatchKind.FUZZY,
                    score=combined,
                    threshold=threshold,
                    matched_fingerprint=fp,
                    matched_title=record.title,
                    best_score=max(best_score, combined),
                    best_title=record.title,
                    **base,
                )

            if combined > best_score:
                best_score = combined
                best_title = record.title

        await self._forget(expired)

        if best_score > 0:
            logger.info(f"Best non-matching content: '{best_title}' ({best_score:.0%}, below threshold)")

        return DedupResult(kind=MatchKind.UNIQUE, best_score=best_score, best_title=best_title, **base)

    async def _forget(self, fingerprints: List[str]):
        """Drop index entries whose content record has expired."""
        if not fingerprints:
            return
        try:
            removed = await self.cache.set_remove(GLOBAL_ARTICLES_KEY, *fingerprints)
            logger.debug(f"Removed {removed} expired fingerprints from global index")
        except CacheUnavailable as e:
            logger.debug(f"Could not prune global index: {e}")

    async def is_duplicate(self, article: Article, candidate_text: Optional[str] = None) -> bool:
        """True if the article (or candidate text) matches processed content."""
        result = await self.check(article, candidate_text)
        return result.is_duplicate

    is_similar_to_cached = is_duplicate

    async def store_content(self, article: Article, content: Optional[str]) -> bool:
        """
        Persist an article (and its generated content) for future checks.

        Writes content:<fp> (overwrite, TTL reset), semantic:<sfp> -> fp,
        adds fp to source:<source> and global:articles (TTL refreshed) and
        pushes the topic to the recent list.

        Returns:
            False if any write failed; dedup state may then be stale
        """
        fingerprint, semantic_fingerprint = self.fingerprints.both(article)
        ttl = self.config.CACHE_TTL_SECONDS

        record = CachedContentRecord(
            title=article.title,
            content=content,
            source=article.source,
            timestamp=now_ms(),
            url=article.url,
            topic=article.topic,
            keywords=article.keywords,
        )

        try:
            await self.cache.set(content_key(fingerprint), record.to_json(), ttl)

            if self._has_entities(article):
                await self.cache.set(semantic_key(semantic_fingerprint), fingerprint, ttl)

            article_source_key = source_key(article.source)
            await self.cache.set_add(article_source_key, fingerprint)
            await self.cache.expire(article_source_key, ttl)

            await self.cache.set_add(GLOBAL_ARTICLES_KEY, fingerprint)
            await self.cache.expire(GLOBAL_ARTICLES_KEY, ttl)
        except CacheUnavailable as e:
            logger.warning(f"Failed to store '{article.title[:60]}' in dedup cache: {e}")
            self.monitor.record_store(False)
            if self.config.ENABLE_INTENT_MARKERS:
                await self.release_intent(article)
            return False

        if article.topic:
            await self.tracker.add_recent_topic(article.topic)

        if self.config.ENABLE_INTENT_MARKERS:
            await self.release_intent(article)

        logger.info(
            f"Stored article '{article.title[:40]}' with fingerprints "
            f"content={fingerprint} semantic={semantic_fingerprint}"
        )
        self.monitor.record_store(True)
        return True

    async def release_intent(self, article: Article) -> bool:
        """Clear the in-flight markers for an article (after store or on failure)."""
        try:
            await self.cache.delete(*self._intent_keys(article))
            return True
        except CacheUnavailable as e:
            logger.warning(f"Failed to clear processing intent: {e}")
            return False

    # Recency / cooldown

    async def add_recent_topic(self, topic: str) -> bool:
        return await self.tracker.add_recent_topic(topic)

    record_topic = add_recent_topic

    async def get_recently_posted_topics(self) -> RecentTopicsSummary:
        return await self.tracker.get_recently_posted_topics()

    async def calculate_topic_similarity(self, article: Article) -> float:
        return await self.tracker.calculate_topic_similarity(article)

    topic_similarity = calculate_topic_similarity

    async def has_been_crossposted(self, content: str) -> bool:
        return await self.tracker.has_been_crossposted(content)

    async def mark_as_crossposted(self, content: str) -> bool:
        return await self.tracker.mark_as_crossposted(content)

    mark_crossposted = mark_as_crossposted

    async def get_last_crossposted_content(self) -> Optional[LastCrosspost]:
        return await self.tracker.get_last_crossposted_content()

    # Batch operations

    def cluster_articles(self, articles: List[Article]) -> List[List[Article]]:
        """Group a batch of unique articles into same-story clusters."""
        return self.clusterer.cluster(articles)

    def deduplicate_batch(self, articles: List[Article]) -> List[Article]:
        """Remove cross-source duplicates inside one fetched batch."""
        return self.batch_deduplicator.deduplicate(articles)

    # Maintenance

    async def cleanup(self) -> dict:
        """
        Delete keys left without a TTL and prune index sets.

        Dedup keys that carry no expiry are deleted; fingerprints
        in global:articles and source:* whose content record is gone are removed.
        """
        stats = {"keys_deleted": 0, "index_entries_removed": 0}

        try:
            keys = []
            for prefix in (CONTENT_PREFIX, SOURCE_PREFIX, SEMANTIC_PREFIX):
                keys.extend(await self.cache.keys_with_prefix(prefix))
            keys.extend([GLOBAL_ARTICLES_KEY, RECENT_TOPICS_KEY, CROSSPOST_KEY])

            for key in keys:
                if await self.cache.ttl(key) == -1:
                    stats["keys_deleted"] += await self.cache.delete(key)

            index_keys = [GLOBAL_ARTICLES_KEY] + await self.cache.keys_with_prefix(SOURCE_PREFIX)
            for index_key in index_keys:
                members = await self.cache.set_members(index_key)
                stale = [fp for fp in members if not await self.cache.exists(content_key(fp))]
                stats["index_entries_removed"] += await self.cache.set_remove(index_key, *stale)
        except CacheUnavailable as e:
            logger.warning(f"Cleanup stopped early, cache unavailable: {e}")
            stats["error"] = str(e)

        logger.info(
            f"Cleanup: {stats['keys_deleted']} keys deleted, "
            f"{stats['index_entries_removed']} stale index entries removed"
        )
        return stats

    async def get_stats(self) -> dict:
        """Cache and decision statistics."""
        stats = {"monitor": self.monitor.summary()}
        try:
            stats["global_articles"] = len(await self.cache.set_members(GLOBAL_ARTICLES_KEY))
            stats["sources"] = len(await self.cache.keys_with_prefix(SOURCE_PREFIX))
            stats["recent_topics"] = len(await self.cache.list_range(RECENT_TOPICS_KEY, 0, -1))
            stats["cache"] = "ok"
        except CacheUnavailable as e:
            logger.warning(f"Could not collect cache stats: {e}")
            stats["cache"] = "unavailable"
        return stats

    async def close(self):
        await self.cache.close()
