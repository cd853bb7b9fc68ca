"""Heuristic key-entity extraction for chunk metadata."""
from __future__ import annotations

import re
from collections import Counter
from typing import Dict, Iterable, List, Protocol, Sequence

from .normalization import is_stop_word

_MONTHS = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)

_COMPANY_RE = re.compile(
    r"\b[A-Z][A-Za-z&]+(?:[ \t]+[A-Z][A-Za-z&]+)*[ \t]+"
    r"(?:Group|Inc\.?|LLC|Corporation|Corp\.?|Company|Co\.|Ltd\.?|GmbH|PLC)"
)
_CAPITALIZED_PHRASE_RE = re.compile(
    r"\b[A-Z][\w'’&-]*(?:[ \t]+(?:(?:of|and|for|the|&)[ \t]+)?[A-Z][\w'’&-]*)+"
)
_PATTERNS: Sequence[re.Pattern[str]] = (
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
    re.compile(r"\b\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}\b"),
    re.compile(rf"\b{_MONTHS}\.?[ \t]+\d{{1,2}}(?:st|nd|rd|th)?,?[ \t]+\d{{4}}\b"),
    re.compile(rf"\b\d{{1,2}}(?:st|nd|rd|th)?[ \t]+{_MONTHS}\.?,?[ \t]+\d{{4}}\b"),
    re.compile(r"[$€£¥][ \t]?\d[\d,]*(?:\.\d+)?(?:[ \t]?(?:million|billion|thousand)\b)?"),
    re.compile(r"\b\d+(?:\.\d+)?[ \t]?%"),
    re.compile(
        r"\b\d[\d,]*(?:\.\d+)?[ \t]*(?:sq\.?[ \t]?(?:ft|feet)|square[ \t]+f(?:ee|oo)t|acres?|RSF|SF)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b\d{1,3}(?:,\d{3})+(?:\.\d+)?\b"),
)
_WORD_RE = re.compile(r"[^\W\d_]{4,}")


class EntityExtractor(Protocol):
    """Contract for anything able to pull notable terms out of a text segment."""

    def extract(self, text: str, seed_terms: Iterable[str] = ()) -> List[str]:
        """Return entities that literally occur in *text*."""


class HeuristicEntityExtractor:
    """Capitalisation, pattern and frequency based entity extraction."""

    def __init__(self, frequency_threshold: int = 3, max_entities: int = 20) -> None:
        self.frequency_threshold = max(frequency_threshold, 1)
        self.max_entities = max_entities

    def extract(self, text: str, seed_terms: Iterable[str] = ()) -> List[str]:
        if not text:
            return []

        found: Dict[str, str] = {}

        def _add(candidate: str) -> None:
            candidate = candidate.strip()
            key = candidate.lower()
            if candidate and key not in found:
                found[key] = candidate

        for term in seed_terms:
            if not term:
                continue
            match = re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text, re.IGNORECASE)
            if match:
                _add(match.group(0))

        for match in _COMPANY_RE.finditer(text):
            _add(match.group(0))
        for match in _CAPITALIZED_PHRASE_RE.finditer(text):
            _add(match.group(0))
        for pattern in _PATTERNS:
            for match in pattern.finditer(text):
                _add(match.group(0))

        for word in self._frequent_words(text):
            _add(word)

        return list(found.values())[: self.max_entities]

    def _frequent_words(self, text: str) -> List[str]:
        counts: Counter[str] = Counter()
        surface: Dict[str, str] = {}
        for match in _WORD_RE.finditer(text):
            word = match.group(0)
            key = word.lower()
            if is_stop_word(key):
                continue
            counts[key] += 1
            surface.setdefault(key, word)
        return [surface[key] for key, count in counts.items() if count >= self.frequency_threshold]


__all__ = ["EntityExtractor", "HeuristicEntityExtractor"]
