"""Tests for package imports."""

import importlib

import pytest


@pytest.mark.parametrize("module", [
    "content_dedup",
    "content_dedup.storage.cache_client",
    "content_dedup.deduplication",
    "content_dedup.cli.maintenance",
])
def test_import(module):
    assert importlib.import_module(module) is not None


def test_public_api():
    import content_dedup

    for name in content_dedup.__all__:
        assert hasattr(content_dedup, name)
