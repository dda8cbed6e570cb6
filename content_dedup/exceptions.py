"""Exceptions raised inside the deduplication core."""

from typing import Optional


class DedupError(Exception):
    """Base class for deduplication errors."""


class CacheUnavailable(DedupError):
    """Cache could not be reached (connection refused, timeout) after retries."""

    def __init__(self, operation: str, key: str = "", cause: Optional[Exception] = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        message = f"Cache unavailable during {operation}"
        if key:
            message += f" ({key})"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class MalformedCachedRecord(DedupError):
    """A stored record could not be parsed or is missing required fields."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Malformed cached record {key}: {reason}")
