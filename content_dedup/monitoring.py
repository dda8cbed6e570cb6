"""Dedup decision counters."""

import logging
from collections import Counter
from datetime import datetime, timezone

from .models import MatchKind

logger = logging.getLogger(__name__)


class DedupMonitor:
    """Count dedup decisions, store outcomes and cache degradation events."""

    def __init__(self):
        self.started_at = datetime.now(timezone.utc)
        self.decisions: Counter = Counter()
        self.stores: Counter = Counter()
        self.cache_errors: Counter = Counter()
        self.malformed_records = 0

    def record_decision(self, kind: MatchKind):
        self.decisions[kind.value] += 1

    def record_store(self, success: bool):
        self.stores["ok" if success else "failed"] += 1

    def record_cache_error(self, operation: str):
        self.cache_errors[operation] += 1

    def record_malformed(self):
        self.malformed_records += 1

    def summary(self) -> dict:
        """Return counters as a plain dict."""
        total = sum(self.decisions.values())
        duplicates = total - self.decisions.get(MatchKind.UNIQUE.value, 0)
        return {
            "since": self.started_at.isoformat(),
            "checks": total,
            "duplicates": duplicates,
            "duplicate_rate": duplicates / total if total else 0.0,
            "by_kind": dict(self.decisions),
            "stores": dict(self.stores),
            "cache_errors": dict(self.cache_errors),
            "malformed_records": self.malformed_records,
        }

    def log_summary(self):
        stats = self.summary()
        logger.info(
            f"Dedup stats: {stats['checks']} checks, {stats['duplicates']} duplicates "
            f"({stats['duplicate_rate']:.0%}), by kind {stats['by_kind']}"
        )
        if stats["cache_errors"]:
            logger.warning(f"Cache degraded during run: {stats['cache_errors']}")
