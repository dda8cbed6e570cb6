"""Deduplication module."""

from .article_clusterer import (
    BestMatchClusterer,
    ClusteringStrategy,
    FirstMatchClusterer,
    select_representatives,
)
from .batch_deduplicator import SourcePriorityDeduplicator
from .content_deduplicator import ContentDeduplicator
from .fingerprint import FingerprintGenerator, content_fingerprint, semantic_fingerprint
from .recency_tracker import RecencyTracker
from .similarity import SimilarityEngine, get_similarity_threshold

__all__ = [
    "ContentDeduplicator",
    "RecencyTracker",
    "SimilarityEngine",
    "FingerprintGenerator",
    "ClusteringStrategy",
    "FirstMatchClusterer",
    "BestMatchClusterer",
    "SourcePriorityDeduplicator",
    "content_fingerprint",
    "semantic_fingerprint",
    "get_similarity_threshold",
    "select_representatives",
]
