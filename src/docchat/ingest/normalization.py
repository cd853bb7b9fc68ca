"""Text normalisation shared by entity extraction and query analysis."""
from __future__ import annotations

import re
import unicodedata
from typing import FrozenSet, List

_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "a", "about", "above", "after", "again", "against", "all", "also", "am", "an",
        "and", "any", "are", "as", "at", "be", "because", "been", "before", "being",
        "below", "between", "both", "but", "by", "can", "could", "did", "do", "does",
        "doing", "don", "down", "during", "each", "else", "explain", "few", "find",
        "for", "from", "further", "give", "had", "has", "have", "having", "he", "her",
        "here", "hers", "him", "his", "how", "i", "if", "in", "into", "is", "it",
        "its", "just", "know", "let", "me", "mention", "mentioned", "mentions", "more",
        "most", "must", "my", "no", "nor", "not", "now", "of", "off", "on", "once",
        "only", "or", "other", "our", "ours", "out", "over", "own", "page", "pages",
        "please", "same", "say", "said", "says", "shall", "she", "should", "show",
        "so", "some", "such", "tell", "than", "that", "the", "their", "theirs", "them",
        "then", "there", "these", "they", "this", "those", "through", "to", "too",
        "under", "until", "up", "us", "very", "was", "we", "were", "what", "when",
        "where", "which", "while", "who", "whom", "why", "will", "with", "would",
        "you", "your", "yours",
    }
)


def normalize_text(text: str) -> str:
    """Lowercase *text* and replace punctuation with single spaces."""

    normalized = unicodedata.normalize("NFC", text).lower()
    normalized = _PUNCTUATION_RE.sub(" ", normalized)
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def tokenize(text: str) -> List[str]:
    normalized = normalize_text(text)
    return normalized.split(" ") if normalized else []


def is_stop_word(token: str) -> bool:
    return token.lower() in STOP_WORDS


__all__ = ["STOP_WORDS", "is_stop_word", "normalize_text", "tokenize"]
