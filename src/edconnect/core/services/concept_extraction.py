"""
Keyword-based concept extraction from tutor replies.

The subject string picks one keyword table by case-insensitive substring
(math, science, english, history); unknown subjects search the union of all
tables. Tables come from the ``[tutor]`` configuration section.
"""

import re
from typing import Dict, List, Optional, Pattern

from .settings_config_service import get_settings_service

MAX_CONCEPTS = 10


def _compile(keywords: List[str]) -> Optional[Pattern]:
    words = [re.escape(k.strip()) for k in keywords if k.strip()]
    if not words:
        return None
    # Longest first so "theorem" is preferred over a shorter shared prefix
    words.sort(key=len, reverse=True)
    return re.compile(r"\b(?:" + "|".join(words) + r")\b", re.IGNORECASE)


class ConceptExtractor:
    """Matches tutor text against subject-keyed keyword tables."""

    def __init__(
        self,
        tables: Optional[Dict[str, Dict[str, List[str]]]] = None,
        max_concepts: Optional[int] = None,
    ):
        settings = get_settings_service()
        if tables is None:
            tables = settings.get_concept_tables()
        if max_concepts is None:
            max_concepts = settings.getint("tutor", "concepts.max", MAX_CONCEPTS)
        self.tables = tables
        self.max_concepts = max_concepts
        self._patterns = {
            category: _compile(table.get("keywords", []))
            for category, table in tables.items()
        }
        union: List[str] = []
        for table in tables.values():
            union.extend(table.get("keywords", []))
        self._union_pattern = _compile(union)

    def category_for(self, subject: Optional[str]) -> Optional[str]:
        """First category whose subject keys occur in ``subject``."""
        if not subject:
            return None
        lowered = subject.lower()
        for category, table in self.tables.items():
            if any(key.lower() in lowered for key in table.get("subjects", [])):
                return category
        return None

    def extract(self, text: str, subject: Optional[str] = None) -> List[str]:
        """Up to ``max_concepts`` deduplicated, capitalized keywords in order of appearance."""
        if not text:
            return []
        category = self.category_for(subject)
        pattern = self._patterns.get(category) if category else self._union_pattern
        if pattern is None:
            return []

        concepts: List[str] = []
        seen = set()
        for match in pattern.findall(text):
            concept = match[:1].upper() + match[1:].lower()
            if concept in seen:
                continue
            seen.add(concept)
            concepts.append(concept)
            if len(concepts) >= self.max_concepts:
                break
        return concepts


_extractor: Optional[ConceptExtractor] = None


def get_concept_extractor() -> ConceptExtractor:
    global _extractor
    if _extractor is None:
        _extractor = ConceptExtractor()
    return _extractor


def reset_concept_extractor():
    global _extractor
    _extractor = None


def extract_concepts(text: str, subject: Optional[str] = None) -> List[str]:
    return get_concept_extractor().extract(text, subject)
