"""High level document processing entry point."""
from __future__ import annotations

import logging
import time
from itertools import islice
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import PipelineSettings
from ..logging_config import AUDIT_LOGGER_NAME
from ..telemetry import emit_pipeline_event, traced_duration
from .chunking import ChunkingConfig, SegmentChunker
from .entities import EntityExtractor, HeuristicEntityExtractor
from .language import LanguageDetector
from .metadata import MetadataEnhancer, PageMarker, find_page_markers
from .models import Chunk, DocumentRecord

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger(AUDIT_LOGGER_NAME)


def build_entity_index(chunks: Sequence[Chunk]) -> Dict[str, Tuple[int, ...]]:
    """Map each key entity to the indices of the chunks mentioning it."""

    surface: Dict[str, str] = {}
    index: Dict[str, List[int]] = {}
    for chunk in chunks:
        for entity in chunk.key_entities:
            key = entity.lower()
            surface.setdefault(key, entity)
            positions = index.setdefault(key, [])
            if not positions or positions[-1] != chunk.index:
                positions.append(chunk.index)
    return {surface[key]: tuple(positions) for key, positions in index.items()}


def _page_count(markers: Sequence[PageMarker]) -> int:
    totals = [marker.total for marker in markers if marker.total]
    if totals:
        return max(totals)
    return max((marker.page for marker in markers), default=0)


class DocumentPipeline:
    """Chunk a document, enrich the chunks and wrap them into a :class:`DocumentRecord`."""

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        *,
        entity_extractor: EntityExtractor | None = None,
        language_detector: LanguageDetector | None = None,
    ) -> None:
        self.settings = settings or PipelineSettings()
        if self.settings.max_chunks <= 0:
            raise ValueError("max_chunks must be a positive integer")
        self.chunker = SegmentChunker(
            ChunkingConfig(
                max_chunk_size=self.settings.max_chunk_size,
                lookback_ratio=self.settings.lookback_ratio,
            )
        )
        self.enhancer = MetadataEnhancer(
            entity_extractor
            or HeuristicEntityExtractor(frequency_threshold=self.settings.entity_frequency_threshold)
        )
        self.language_detector = language_detector or LanguageDetector()

    def process(
        self,
        text: str | None,
        file_name: str,
        search_terms: Optional[Sequence[str]] = None,
        page_references: Optional[Sequence[int]] = None,
    ) -> DocumentRecord:
        """Build a fresh record for *text*; unusable input yields a record without chunks."""

        text = text or ""
        LOGGER.info("Processing document %s with %s characters", file_name, len(text))
        if search_terms:
            LOGGER.info("Using search terms: %s", ", ".join(search_terms))
        if page_references:
            LOGGER.info("Prioritizing pages: %s", ", ".join(str(page) for page in page_references))

        if len(text.strip()) < self.settings.min_document_chars:
            LOGGER.warning("Document %s has no usable text; returning an empty record", file_name)
            emit_pipeline_event("pipeline.process.empty", file_name=file_name, length=len(text), chunks=0)
            return DocumentRecord.empty(file_name, total_length=len(text))

        started = time.perf_counter()
        with traced_duration("pipeline.process", file_name=file_name):
            limit = self.settings.max_chunks
            segments = [segment for segment, _, _ in islice(self.chunker.iter_spans(text), limit + 1)]
            truncated = len(segments) > limit
            if truncated:
                segments = segments[:limit]
                LOGGER.warning(
                    "Document %s exceeds %s chunks; remaining text was not indexed", file_name, limit
                )

            markers = find_page_markers(text)
            chunks = self.enhancer.enhance(segments, text, seed_terms=search_terms or (), markers=markers)
            record = DocumentRecord(
                file_name=file_name,
                chunks=tuple(chunks),
                total_length=len(text),
                page_count=_page_count(markers),
                language=self.language_detector.detect(text),
                entity_index=build_entity_index(chunks),
                truncated=truncated,
            )

        LOGGER.info(
            "Generated %s chunks for %s in %.3fs",
            len(record.chunks),
            file_name,
            time.perf_counter() - started,
        )
        emit_pipeline_event(
            "pipeline.process.complete",
            file_name=file_name,
            length=record.total_length,
            chunks=len(record.chunks),
            pages=record.page_count,
            language=record.language,
            truncated=record.truncated,
        )
        AUDIT_LOGGER.info(
            {
                "event": "document.processed",
                "file_name": file_name,
                "chunk_count": len(record.chunks),
                "page_count": record.page_count,
                "truncated": record.truncated,
            }
        )
        return record


__all__ = ["DocumentPipeline", "build_entity_index"]
