"""Data models for articles, cached records and dedup decisions."""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from .exceptions import MalformedCachedRecord

MS_PER_HOUR = 1000 * 60 * 60


def now_ms() -> int:
    """Current UTC time as epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def hours_since(timestamp_ms: int, now: Optional[int] = None) -> float:
    """Hours elapsed since an epoch-millisecond timestamp."""
    if now is None:
        now = now_ms()
    return (now - timestamp_ms) / MS_PER_HOUR


class Article(BaseModel):
    """News article as handed to the dedup core (never mutated by it)."""

    title: str = Field(description="Article headline")
    description: str = Field(default="", description="Summary or lead paragraph")
    url: str = Field(default="", description="Source URL")
    source: str = Field(default="unknown", description="Source label, e.g. CoinDesk")
    keywords: list[str] = Field(default_factory=list)
    topic: Optional[str] = Field(default=None, description="Topic label")
    published_at: Optional[datetime] = None
    importance_score: Optional[float] = Field(
        default=None, description="Caller-assigned importance (representative selection)"
    )

    @property
    def entity_text(self) -> str:
        """Text used for entity, project and event extraction."""
        return f"{self.title} {self.description or ''}"


class CachedContentRecord(BaseModel):
    """Record stored under content:<fingerprint>."""

    title: str
    content: Optional[str] = None
    source: Optional[str] = None
    timestamp: int = Field(description="Epoch milliseconds when stored")
    url: Optional[str] = None
    topic: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)

    @classmethod
    def from_json(cls, raw: str, key: str = "") -> "CachedContentRecord":
        """Parse and validate a stored record.

        Raises:
            MalformedCachedRecord: invalid JSON or missing/invalid required field
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedCachedRecord(key, f"invalid JSON ({e})")

        if not isinstance(data, dict):
            raise MalformedCachedRecord(key, "record is not an object")

        try:
            return cls(**data)
        except ValidationError as e:
            raise MalformedCachedRecord(key, f"schema mismatch ({e.error_count()} errors)")

    def to_json(self) -> str:
        return self.model_dump_json()

    def age_hours(self, now: Optional[int] = None) -> float:
        """Hours since this record was stored."""
        return hours_since(self.timestamp, now)


class RecentTopic(BaseModel):
    """Entry of the bounded recent topics list."""

    name: str
    timestamp: int
    keywords: list[str] = Field(default_factory=list)


class RecentTopicsSummary(BaseModel):
    """Topics and keywords currently in the cooldown window."""

    topics: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)


class CrosspostRecord(BaseModel):
    """Single-slot record of the last cross-posted text."""

    content: str
    timestamp: int

    def age_hours(self, now: Optional[int] = None) -> float:
        return hours_since(self.timestamp, now)


class LastCrosspost(BaseModel):
    """Last cross-posted content with its age."""

    content: str
    timestamp: int
    hours_ago: float


class MatchKind(str, Enum):
    """How a dedup check was decided."""

    EXACT = "exact"
    SEMANTIC = "semantic"
    FUZZY = "fuzzy"
    IN_FLIGHT = "in_flight"
    UNIQUE = "unique"


class DedupResult(BaseModel):
    """Outcome of one dedup check."""

    kind: MatchKind
    content_fingerprint: str
    semantic_fingerprint: str
    score: float = Field(default=0.0, description="Combined similarity of the match")
    threshold: Optional[float] = None
    matched_fingerprint: Optional[str] = None
    matched_title: Optional[str] = None
    best_score: float = Field(default=0.0, description="Best non-matching score seen")
    best_title: Optional[str] = None

    @property
    def is_duplicate(self) -> bool:
        return self.kind != MatchKind.UNIQUE
