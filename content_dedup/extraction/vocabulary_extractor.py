"""Vocabulary-based extractors for entities, project names and event keywords."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.text import normalize_keep_hyphens, normalize_text

ENTITY_CATEGORIES = ("companies", "cryptocurrencies", "products", "regulators", "locations")


def _unique_lower(terms: list[str]) -> list[str]:
    seen = set()
    result = []
    for term in terms:
        term = term.strip().lower()
        if term and term not in seen:
            seen.add(term)
            result.append(term)
    return result


class Vocabularies(BaseModel):
    """Static term lists used by the extractors."""

    entities: dict[str, list[str]] = Field(default_factory=dict)
    projects: list[str] = Field(default_factory=list)
    events: list[str] = Field(default_factory=list)
    stopwords: list[str] = Field(default_factory=list)

    @field_validator("entities")
    @classmethod
    def _check_entities(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        unknown = set(value) - set(ENTITY_CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown entity categories: {sorted(unknown)}")
        # Keep the fixed category order regardless of file order
        return {
            category: _unique_lower(value[category])
            for category in ENTITY_CATEGORIES
            if category in value
        }

    @field_validator("projects", "events", "stopwords")
    @classmethod
    def _normalize_terms(cls, value: list[str]) -> list[str]:
        return _unique_lower(value)

    @classmethod
    def from_dict(cls, data: dict) -> "Vocabularies":
        return cls(
            entities=data.get("entities", {}),
            projects=data.get("projects", []),
            events=data.get("events", []),
            stopwords=data.get("stopwords", []),
        )


class EntityExtractor:
    """Find category:term entity tags in text."""

    def __init__(self, entities: dict[str, list[str]]):
        self.entities = entities

    def extract(self, text: Optional[str]) -> list[str]:
        """Return entity tags found in text, e.g. ["companies:blackrock"]."""
        normalized = normalize_text(text)
        if not normalized:
            return []

        tags = []
        for category, terms in self.entities.items():
            for term in terms:
                if term in normalized:
                    tags.append(f"{category}:{term}")
        return tags


class TermExtractor:
    """Find bare vocabulary terms in hyphen-preserving normalized text."""

    def __init__(self, terms: list[str]):
        self.terms = terms

    def extract(self, text: Optional[str]) -> list[str]:
        normalized = normalize_keep_hyphens(text)
        if not normalized:
            return []
        return [term for term in self.terms if term in normalized]


class ProjectExtractor(TermExtractor):
    """Blockchain project, protocol and platform names."""


class EventExtractor(TermExtractor):
    """Keywords for event types (launch, hack, partnership, ...)."""


class VocabularyExtractors:
    """All extractors built from one vocabulary set."""

    def __init__(self, vocabularies: Vocabularies):
        self.vocabularies = vocabularies
        self.entities = EntityExtractor(vocabularies.entities)
        self.projects = ProjectExtractor(vocabularies.projects)
        self.events = EventExtractor(vocabularies.events)
        self.stopwords = frozenset(vocabularies.stopwords)

    @classmethod
    def from_dict(cls, data: dict) -> "VocabularyExtractors":
        return cls(Vocabularies.from_dict(data))
