"""Language detection helpers."""
from __future__ import annotations

import logging
from typing import Optional

from langdetect import DetectorFactory, LangDetectException, detect

LOGGER = logging.getLogger(__name__)
DetectorFactory.seed = 0


class LanguageDetector:
    """Wraps langdetect; only a leading sample of the document is inspected."""

    def __init__(self, sample_chars: int = 5000) -> None:
        self.sample_chars = sample_chars

    def detect(self, text: str) -> Optional[str]:
        cleaned = text[: self.sample_chars].strip()
        if not cleaned:
            return None
        try:
            language = detect(cleaned)
            LOGGER.debug("Detected language: %s", language)
            return language
        except LangDetectException:
            LOGGER.info("Unable to determine language for text of length %s", len(text))
            return None
