"""Shared fixtures: default vocabularies and an isolated fake Redis per test."""

import fakeredis
import pytest

from content_dedup.config_loader import Config, load_vocabularies
from content_dedup.deduplication import ContentDeduplicator, SimilarityEngine
from content_dedup.extraction import Vocabularies, VocabularyExtractors
from content_dedup.storage import CacheClient


@pytest.fixture
def config():
    config = Config()
    config.CACHE.MAX_RETRIES = 1
    return config


@pytest.fixture
def vocabularies(config):
    return Vocabularies.from_dict(load_vocabularies(config))


@pytest.fixture
def extractors(vocabularies):
    return VocabularyExtractors(vocabularies)


@pytest.fixture
def similarity(extractors):
    return SimilarityEngine(extractors)


@pytest.fixture
def fake_server():
    return fakeredis.FakeServer()


@pytest.fixture
def redis_client(fake_server):
    return fakeredis.FakeAsyncRedis(server=fake_server, decode_responses=True)


@pytest.fixture
def cache(redis_client):
    return CacheClient(redis_client, timeout_seconds=1.0, max_retries=1, backoff_ms=1, backoff_cap_ms=1)


@pytest.fixture
def deduplicator(cache, config, vocabularies):
    return ContentDeduplicator(cache, config, vocabularies)
