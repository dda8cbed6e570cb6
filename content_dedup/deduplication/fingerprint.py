"""Content and semantic fingerprints."""

import hashlib

from ..extraction import EntityExtractor
from ..models import Article
from ..utils.text import normalize_for_fingerprint

SEMANTIC_DELIMITER = "|"


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def content_fingerprint(article: Article) -> str:
    """
    Hash of normalized title + description + keywords.

    Different outlets covering the same event usually get different content
    fingerprints; semantic fingerprints and the similarity scan cover that.
    """
    parts = [article.title, article.description, " ".join(article.keywords or [])]
    content = " ".join(part for part in parts if part)
    return _md5(normalize_for_fingerprint(content))


def semantic_fingerprint(article: Article, entity_extractor: EntityExtractor) -> str:
    """Hash of the sorted entity tag set of title + description."""
    entities = sorted(set(entity_extractor.extract(article.entity_text)))
    return _md5(SEMANTIC_DELIMITER.join(entities))


class FingerprintGenerator:
    """Generate both fingerprints with a bound entity extractor."""

    def __init__(self, entity_extractor: EntityExtractor):
        self.entity_extractor = entity_extractor

    def content(self, article: Article) -> str:
        return content_fingerprint(article)

    def semantic(self, article: Article) -> str:
        return semantic_fingerprint(article, self.entity_extractor)

    def both(self, article: Article) -> tuple[str, str]:
        """Return (content_fingerprint, semantic_fingerprint)."""
        return self.content(article), self.semantic(article)
