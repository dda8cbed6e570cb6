"""Configuration loader."""

import json
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class CacheSettings(BaseModel):
    """Key-value cache connection settings."""

    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    SOCKET_TIMEOUT_SECONDS: float = Field(default=2.0)
    MAX_RETRIES: int = Field(default=3)
    RETRY_BACKOFF_MS: int = Field(default=50)
    RETRY_BACKOFF_CAP_MS: int = Field(default=2000)


class SimilarityThresholds(BaseModel):
    """Similarity thresholds by age bracket of the cached record."""

    RECENT: float = Field(default=0.5)  # < 6h
    MEDIUM: float = Field(default=0.55)  # < 12h
    OLD: float = Field(default=0.6)  # < 24h
    VERY_OLD: float = Field(default=0.65)  # >= 24h


class CombinedWeights(BaseModel):
    """Weights for the global index scan."""

    TITLE: float = Field(default=0.4)
    ENTITY: float = Field(default=0.3)
    CONTENT: float = Field(default=0.3)


class Config(BaseModel):
    """Deduplication engine configuration."""

    CACHE: CacheSettings = Field(default_factory=CacheSettings)
    CACHE_TTL_SECONDS: int = Field(default=24 * 60 * 60)
    CROSSPOST_TTL_SECONDS: int = Field(default=24 * 60 * 60)
    CROSSPOST_WINDOW_HOURS: float = Field(default=24.0)
    MAX_RECENT_TOPICS: int = Field(default=10)
    SIMILARITY_THRESHOLDS: SimilarityThresholds = Field(default_factory=SimilarityThresholds)
    COMBINED_WEIGHTS: CombinedWeights = Field(default_factory=CombinedWeights)
    SOURCE_PRIORITY: dict[str, int] = Field(
        default={
            "CoinDesk": 1,
            "TheBlock": 1,
            "Decrypt": 2,
            "BitcoinMagazine": 2,
            "CryptoPotato": 3,
            "NewsAPI": 3,
        }
    )
    ENABLE_INTENT_MARKERS: bool = Field(default=False)
    INTENT_TTL_SECONDS: int = Field(default=60 * 60)
    VOCABULARY_PATH: Optional[str] = None
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: Optional[str] = None

    @property
    def config_dir(self) -> Path:
        """Return bundled config directory path."""
        return Path(__file__).parent / "config"

    @property
    def vocabulary_path(self) -> Path:
        """Return path to the vocabulary file."""
        if self.VOCABULARY_PATH:
            return Path(self.VOCABULARY_PATH)
        return self.config_dir / "vocabularies.json"


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file (defaults if no path).

    REDIS_URL from the environment (or a .env file) overrides the file value.
    """
    data: dict[str, Any] = {}
    if config_path:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

    config = Config(**data)

    load_dotenv()
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        config.CACHE.REDIS_URL = redis_url

    return config


def load_vocabularies(config: Config) -> dict[str, Any]:
    """Load extractor vocabularies (entities, projects, events, stopwords)."""
    vocab_path = config.vocabulary_path
    if not vocab_path.exists():
        raise FileNotFoundError(f"Vocabulary file not found: {vocab_path}")

    with open(vocab_path, "r") as f:
        return json.load(f)
