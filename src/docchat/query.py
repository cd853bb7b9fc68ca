"""Interpretation of user chat messages into search terms and page references."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Tuple

from .ingest.normalization import is_stop_word, tokenize

LOGGER = logging.getLogger(__name__)

_PAGE_REF_RE = re.compile(
    r"\b(?:pages?|pgs?|pp|p)\.?[ \t]*"
    r"(?P<body>\d+(?:[ \t]*(?:-|–|—|to|through|thru|,|and|&)[ \t]*\d+)*)",
    re.IGNORECASE,
)
_PAGE_ITEM_RE = re.compile(
    r"(\d+)(?:[ \t]*(?:-|–|—|to|through|thru)[ \t]*(\d+))?",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class QueryAnalysis:
    """Search terms and explicit page references extracted from one message."""

    search_terms: Tuple[str, ...] = ()
    page_references: Tuple[int, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.search_terms and not self.page_references


class QueryAnalyzer:
    """Pure functions over a message string; no state is kept between calls."""

    def __init__(self, min_term_length: int = 2, max_page_number: int = 10000) -> None:
        self.min_term_length = min_term_length
        self.max_page_number = max_page_number

    def analyze(self, message: str | None) -> QueryAnalysis:
        analysis = QueryAnalysis(
            search_terms=tuple(self.extract_search_terms(message)),
            page_references=tuple(self.extract_page_references(message)),
        )
        LOGGER.debug(
            "Analyzed message: terms=%s pages=%s",
            list(analysis.search_terms),
            list(analysis.page_references),
        )
        return analysis

    def extract_search_terms(self, message: str | None) -> List[str]:
        if not message or not message.strip():
            return []

        without_pages = _PAGE_REF_RE.sub(" ", message)
        terms: List[str] = []
        seen = set()
        for token in tokenize(without_pages):
            if len(token) < self.min_term_length or is_stop_word(token) or token in seen:
                continue
            seen.add(token)
            terms.append(token)
        return terms

    def extract_page_references(self, message: str | None) -> List[int]:
        if not message or not message.strip():
            return []

        pages: List[int] = []
        seen = set()

        def _add(page: int) -> None:
            if page not in seen:
                seen.add(page)
                pages.append(page)

        for reference in _PAGE_REF_RE.finditer(message):
            for item in _PAGE_ITEM_RE.finditer(reference.group("body")):
                first = int(item.group(1))
                last = int(item.group(2)) if item.group(2) else first
                if not self._is_valid_page(first) or not self._is_valid_page(last):
                    LOGGER.debug("Ignoring out-of-range page reference %s", item.group(0))
                    continue
                if last < first:
                    LOGGER.debug("Ignoring reversed page range %s", item.group(0))
                    continue
                for page in range(first, last + 1):
                    _add(page)
        return pages

    def _is_valid_page(self, page: int) -> bool:
        return 1 <= page <= self.max_page_number


_DEFAULT_ANALYZER = QueryAnalyzer()


def extract_search_terms(message: str | None) -> List[str]:
    return _DEFAULT_ANALYZER.extract_search_terms(message)


def extract_page_references(message: str | None) -> List[int]:
    return _DEFAULT_ANALYZER.extract_page_references(message)


def analyze(message: str | None) -> QueryAnalysis:
    return _DEFAULT_ANALYZER.analyze(message)


__all__ = [
    "QueryAnalysis",
    "QueryAnalyzer",
    "analyze",
    "extract_page_references",
    "extract_search_terms",
]
