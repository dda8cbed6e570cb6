"""Tests for dedup monitor."""

from content_dedup.models import MatchKind
from content_dedup.monitoring import DedupMonitor


def test_empty_summary():
    summary = DedupMonitor().summary()

    assert summary["checks"] == 0
    assert summary["duplicate_rate"] == 0.0


def test_summary_counts():
    monitor = DedupMonitor()
    for kind in (MatchKind.EXACT, MatchKind.FUZZY, MatchKind.UNIQUE, MatchKind.UNIQUE):
        monitor.record_decision(kind)
    monitor.record_store(True)
    monitor.record_store(False)
    monitor.record_cache_error("exact")
    monitor.record_malformed()

    summary = monitor.summary()

    assert summary["checks"] == 4
    assert summary["duplicates"] == 2
    assert summary["duplicate_rate"] == 0.5
    assert summary["by_kind"] == {"exact": 1, "fuzzy": 1, "unique": 2}
    assert summary["stores"] == {"ok": 1, "failed": 1}
    assert summary["cache_errors"] == {"exact": 1}
    assert summary["malformed_records"] == 1


def test_log_summary(caplog):
    monitor = DedupMonitor()
    monitor.record_decision(MatchKind.EXACT)
    monitor.record_cache_error("scan")

    with caplog.at_level("INFO"):
        monitor.log_summary()

    assert "1 checks, 1 duplicates" in caplog.text
    assert "Cache degraded" in caplog.text
