"""Cache storage module."""

from .cache_client import CacheClient, escape_glob

__all__ = ["CacheClient", "escape_glob"]
