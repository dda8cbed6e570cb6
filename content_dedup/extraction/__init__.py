"""Extraction modules."""

from .vocabulary_extractor import (
    EntityExtractor,
    EventExtractor,
    ProjectExtractor,
    Vocabularies,
    VocabularyExtractors,
)

__all__ = [
    "Vocabularies",
    "VocabularyExtractors",
    "EntityExtractor",
    "ProjectExtractor",
    "EventExtractor",
]
