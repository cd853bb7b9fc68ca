"""Chunking utilities for breaking document text into bounded segments."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Tuple

_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t]*\n")
SENTENCE_END_RE = re.compile(r"[.!?][\"')\]”’]*(?=\s)")
LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ChunkingConfig:
    max_chunk_size: int = 500
    lookback_ratio: float = 0.5


class SegmentChunker:
    """Split text into segments of at most ``max_chunk_size`` characters.

    A segment is closed at the last paragraph break inside the lookback window,
    otherwise at the last sentence end inside the window, otherwise at the last
    whitespace, and as a last resort exactly at the limit. Only whitespace is
    ever dropped between segments.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()
        if self.config.max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be a positive integer")

    def chunk(self, text: str) -> List[str]:
        return [segment for segment, _, _ in self.iter_spans(text)]

    def iter_spans(self, text: str) -> Iterator[Tuple[str, int, int]]:
        """Yield ``(segment, start, end)`` tuples in source order."""

        if not text:
            return
        size = self.config.max_chunk_size
        text_length = len(text)
        start = 0
        while start < text_length:
            while start < text_length and text[start].isspace():
                start += 1
            if start >= text_length:
                break

            limit = start + size
            end = text_length if limit >= text_length else self._find_break(text, start, limit)
            segment = text[start:end].rstrip()
            LOGGER.debug("Segment offsets %s-%s", start, start + len(segment))
            yield segment, start, start + len(segment)
            start = end

    def _find_break(self, text: str, start: int, limit: int) -> int:
        lookback = max(1, int(self.config.max_chunk_size * self.config.lookback_ratio))
        window_start = max(start + 1, limit - lookback)

        paragraph_break = None
        for match in _PARAGRAPH_BREAK_RE.finditer(text, window_start, min(len(text), limit + 2)):
            if match.start() <= limit:
                paragraph_break = match.start()
        if paragraph_break is not None:
            return paragraph_break

        sentence_break = None
        for match in SENTENCE_END_RE.finditer(text, window_start, min(len(text), limit + 1)):
            if match.end() <= limit:
                sentence_break = match.end()
        if sentence_break is not None:
            return sentence_break

        for position in range(limit, start, -1):
            if text[position].isspace():
                return position
        return limit


def chunk_text(text: str, max_chunk_size: int = 500) -> List[str]:
    """Split *text* into ordered, non-empty segments of at most *max_chunk_size* characters."""

    return SegmentChunker(ChunkingConfig(max_chunk_size=max_chunk_size)).chunk(text)


__all__ = ["ChunkingConfig", "SENTENCE_END_RE", "SegmentChunker", "chunk_text"]
