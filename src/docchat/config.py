"""Environment driven settings for the document pipeline."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "DOCCHAT_"


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _float_from_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


@dataclass(slots=True)
class PipelineSettings:
    """Tunable parameters shared by chunking, ranking and context assembly."""

    max_chunk_size: int = 500
    lookback_ratio: float = 0.5
    max_chunks: int = 2000
    min_document_chars: int = 20
    entity_frequency_threshold: int = 3
    min_term_length: int = 2
    max_page_number: int = 10000
    keyword_weight: float = 1.0
    entity_weight: float = 2.0
    page_match_weight: float = 1.5
    top_k: int = 5
    min_relevance: float = 0.05
    neighbor_page_window: int = 2
    context_max_tokens: int = 1500
    chars_per_token: int = 4
    fallback_chunks: int = 2
    sample_chunks: int = 3
    large_document_chunks: int = 100
    very_large_document_chunks: int = 200

    @property
    def max_context_chars(self) -> int:
        return self.context_max_tokens * self.chars_per_token


def load_settings() -> PipelineSettings:
    """Build :class:`PipelineSettings` from ``DOCCHAT_*`` environment variables."""

    defaults = PipelineSettings()
    return PipelineSettings(
        max_chunk_size=_int_from_env(f"{ENV_PREFIX}MAX_CHUNK_SIZE", defaults.max_chunk_size),
        lookback_ratio=_float_from_env(f"{ENV_PREFIX}LOOKBACK_RATIO", defaults.lookback_ratio),
        max_chunks=_int_from_env(f"{ENV_PREFIX}MAX_CHUNKS", defaults.max_chunks),
        min_document_chars=_int_from_env(f"{ENV_PREFIX}MIN_DOCUMENT_CHARS", defaults.min_document_chars),
        entity_frequency_threshold=_int_from_env(
            f"{ENV_PREFIX}ENTITY_FREQUENCY_THRESHOLD", defaults.entity_frequency_threshold
        ),
        min_term_length=_int_from_env(f"{ENV_PREFIX}MIN_TERM_LENGTH", defaults.min_term_length),
        max_page_number=_int_from_env(f"{ENV_PREFIX}MAX_PAGE_NUMBER", defaults.max_page_number),
        keyword_weight=_float_from_env(f"{ENV_PREFIX}KEYWORD_WEIGHT", defaults.keyword_weight),
        entity_weight=_float_from_env(f"{ENV_PREFIX}ENTITY_WEIGHT", defaults.entity_weight),
        page_match_weight=_float_from_env(f"{ENV_PREFIX}PAGE_MATCH_WEIGHT", defaults.page_match_weight),
        top_k=_int_from_env(f"{ENV_PREFIX}TOP_K", defaults.top_k),
        min_relevance=_float_from_env(f"{ENV_PREFIX}MIN_RELEVANCE", defaults.min_relevance),
        neighbor_page_window=_int_from_env(
            f"{ENV_PREFIX}NEIGHBOR_PAGE_WINDOW", defaults.neighbor_page_window
        ),
        context_max_tokens=_int_from_env(f"{ENV_PREFIX}CONTEXT_MAX_TOKENS", defaults.context_max_tokens),
        chars_per_token=_int_from_env(f"{ENV_PREFIX}CHARS_PER_TOKEN", defaults.chars_per_token),
        fallback_chunks=_int_from_env(f"{ENV_PREFIX}FALLBACK_CHUNKS", defaults.fallback_chunks),
        sample_chunks=_int_from_env(f"{ENV_PREFIX}SAMPLE_CHUNKS", defaults.sample_chunks),
        large_document_chunks=_int_from_env(
            f"{ENV_PREFIX}LARGE_DOCUMENT_CHUNKS", defaults.large_document_chunks
        ),
        very_large_document_chunks=_int_from_env(
            f"{ENV_PREFIX}VERY_LARGE_DOCUMENT_CHUNKS", defaults.very_large_document_chunks
        ),
    )


__all__ = ["PipelineSettings", "load_settings"]
