"""Attach index, offsets, pages and key entities to raw segments."""
from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from ..errors import PipelineInvariantError
from .entities import EntityExtractor, HeuristicEntityExtractor
from .models import Chunk

LOGGER = logging.getLogger(__name__)

PAGE_MARKER_RE = re.compile(
    r"\[(?:DOCUMENT[ \t]+)?PAGE[ \t]+(\d+)(?:[ \t]+OF[ \t]+(\d+))?\]",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class PageMarker:
    position: int
    page: int
    total: Optional[int] = None


def find_page_markers(text: str) -> List[PageMarker]:
    """Return page markers in *text* ordered by position."""

    markers: List[PageMarker] = []
    for match in PAGE_MARKER_RE.finditer(text):
        page = int(match.group(1))
        if page <= 0:
            continue
        total = int(match.group(2)) if match.group(2) else None
        markers.append(PageMarker(position=match.start(), page=page, total=total))
    return markers


class MetadataEnhancer:
    """Turn ordered raw segments into :class:`Chunk` objects."""

    def __init__(self, entity_extractor: EntityExtractor | None = None) -> None:
        self.entity_extractor = entity_extractor or HeuristicEntityExtractor()

    def enhance(
        self,
        raw_segments: Iterable[str],
        source_text: str,
        seed_terms: Sequence[str] = (),
        markers: Sequence[PageMarker] | None = None,
    ) -> List[Chunk]:
        if markers is None:
            markers = find_page_markers(source_text)
        marker_positions = [marker.position for marker in markers]

        chunks: List[Chunk] = []
        cursor = 0
        for index, segment in enumerate(raw_segments):
            start = source_text.find(segment, cursor)
            if start == -1 or not segment:
                raise PipelineInvariantError(
                    f"Segment {index} could not be located after offset {cursor}"
                )
            end = start + len(segment)
            cursor = end

            chunks.append(
                Chunk(
                    index=index,
                    text=segment,
                    start_position=start,
                    end_position=end,
                    pages=self._pages_for_range(markers, marker_positions, start, end),
                    key_entities=tuple(self.entity_extractor.extract(segment, seed_terms)),
                )
            )
        LOGGER.debug("Enhanced %s segments (%s page markers)", len(chunks), len(markers))
        return chunks

    @staticmethod
    def _pages_for_range(
        markers: Sequence[PageMarker],
        positions: Sequence[int],
        start: int,
        end: int,
    ) -> Tuple[int, ...]:
        if not markers:
            return ()
        pages = set()
        preceding = bisect.bisect_right(positions, start) - 1
        if preceding >= 0:
            pages.add(markers[preceding].page)
        for marker in markers[preceding + 1 : bisect.bisect_left(positions, end)]:
            pages.add(marker.page)
        return tuple(sorted(pages))


def enhance(raw_segments: Iterable[str], source_text: str, seed_terms: Sequence[str] = ()) -> List[Chunk]:
    """Convenience wrapper around :meth:`MetadataEnhancer.enhance` with default heuristics."""

    return MetadataEnhancer().enhance(raw_segments, source_text, seed_terms)


__all__ = ["MetadataEnhancer", "PageMarker", "PAGE_MARKER_RE", "enhance", "find_page_markers"]
