"""Content deduplication and story clustering engine."""

from .config_loader import Config, load_config
from .deduplication import ContentDeduplicator
from .models import Article, DedupResult, MatchKind
from .storage import CacheClient

__version__ = "1.0.0"

__all__ = [
    "Article",
    "CacheClient",
    "Config",
    "ContentDeduplicator",
    "DedupResult",
    "MatchKind",
    "load_config",
]
