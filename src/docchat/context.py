"""Assemble a size-bounded document context for prompt injection."""
from __future__ import annotations

import functools
import logging
from typing import List, Optional, Sequence

from anyio import to_thread

from .config import PipelineSettings, load_settings
from .ingest.chunking import SENTENCE_END_RE
from .ingest.models import Chunk, DocumentRecord
from .ingest.pipeline import DocumentPipeline
from .query import QueryAnalysis, QueryAnalyzer
from .retriever import RankingConfig, RelevanceRanker
from .telemetry import emit_context_event

LOGGER = logging.getLogger(__name__)

BLOCK_SEPARATOR = "\n\n---\n\n"


def format_page_label(pages: Sequence[int]) -> str:
    """Return ``[Page 4]``, ``[Pages 4-6]`` or ``[Pages 2, 7]``; empty without pages."""

    if not pages:
        return ""
    ordered = sorted(set(pages))
    if len(ordered) == 1:
        return f"[Page {ordered[0]}]"
    if ordered[-1] - ordered[0] == len(ordered) - 1:
        return f"[Pages {ordered[0]}-{ordered[-1]}]"
    return f"[Pages {', '.join(str(page) for page in ordered)}]"


def truncate_at_sentence(text: str, limit: int) -> str:
    """Cut *text* to at most *limit* characters, preferring a sentence end."""

    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text

    sentence_end = None
    for match in SENTENCE_END_RE.finditer(text, 0, limit + 1):
        if match.end() <= limit:
            sentence_end = match.end()
    if sentence_end:
        return text[:sentence_end]

    candidate = text[:limit]
    whitespace = max(candidate.rfind(" "), candidate.rfind("\n"), candidate.rfind("\t"))
    if whitespace > 0 and candidate[:whitespace].strip():
        return candidate[:whitespace].rstrip()
    return candidate


class ContextAssembler:
    """Entry point used by the chat flow: document processing and per-message context."""

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        *,
        pipeline: Optional[DocumentPipeline] = None,
        ranker: Optional[RelevanceRanker] = None,
        analyzer: Optional[QueryAnalyzer] = None,
    ) -> None:
        self.settings = settings or PipelineSettings()
        self.analyzer = analyzer or QueryAnalyzer(
            min_term_length=self.settings.min_term_length,
            max_page_number=self.settings.max_page_number,
        )
        self.ranker = ranker or RelevanceRanker(RankingConfig.from_settings(self.settings), self.analyzer)
        self.pipeline = pipeline or DocumentPipeline(self.settings)

    def process_document(
        self,
        document_text: str | None,
        file_name: str,
        search_terms: Optional[Sequence[str]] = None,
        page_references: Optional[Sequence[int]] = None,
    ) -> DocumentRecord:
        return self.pipeline.process(document_text, file_name, search_terms, page_references)

    async def process_document_async(
        self,
        document_text: str | None,
        file_name: str,
        search_terms: Optional[Sequence[str]] = None,
        page_references: Optional[Sequence[int]] = None,
    ) -> DocumentRecord:
        """Build a :class:`DocumentRecord` on a worker thread so the event loop stays free."""

        return await to_thread.run_sync(
            functools.partial(
                self.process_document, document_text, file_name, search_terms, page_references
            )
        )

    def prepare_document_context(
        self,
        record: DocumentRecord | None,
        user_message: str | None,
        *,
        search_terms: Optional[Sequence[str]] = None,
        page_references: Optional[Sequence[int]] = None,
    ) -> str:
        """Return the formatted context block, or ``""`` when there is nothing to ground on."""

        if record is None or record.is_empty:
            LOGGER.warning("No document chunks available to prepare context")
            return ""

        analysis = QueryAnalysis(
            search_terms=tuple(
                search_terms if search_terms is not None else self.analyzer.extract_search_terms(user_message)
            ),
            page_references=tuple(
                page_references
                if page_references is not None
                else self.analyzer.extract_page_references(user_message)
            ),
        )

        ranked = self.ranker.rank(record, analysis)
        fallback = False
        if not ranked and not analysis.page_references:
            ranked = self.fallback_chunks(record)
            fallback = bool(ranked)
        if not ranked:
            return ""

        return self._assemble(record, ranked, fallback=fallback)

    def fallback_chunks(self, record: DocumentRecord) -> List[Chunk]:
        """Chunks used when nothing ranks for a general question.

        Small documents contribute their opening ``fallback_chunks`` chunks.
        Documents with more than ``large_document_chunks`` chunks are sampled
        at the beginning and middle, and also at the end once they exceed
        ``very_large_document_chunks``. ``fallback_chunks=0`` disables both.
        """

        settings = self.settings
        chunks = record.chunks
        if settings.fallback_chunks <= 0:
            return []
        if len(chunks) <= settings.large_document_chunks or settings.sample_chunks <= 0:
            LOGGER.info("No relevant chunks found, falling back to the opening chunks")
            return list(chunks[: settings.fallback_chunks])

        size = settings.sample_chunks
        middle = max(len(chunks) // 2 - 1, 0)
        indices = set(range(size)) | set(range(middle, middle + size))
        if len(chunks) > settings.very_large_document_chunks:
            indices |= set(range(len(chunks) - size, len(chunks)))
        sampled = [chunks[index] for index in sorted(indices) if 0 <= index < len(chunks)]
        LOGGER.info(
            "No relevant chunks found, sampling chunks %s across the document",
            [chunk.index for chunk in sampled],
        )
        return sampled

    def _assemble(self, record: DocumentRecord, ranked: List[Chunk], *, fallback: bool) -> str:
        budget = self.settings.max_context_chars
        header = f"Document: {record.file_name}"
        blocks = [self._format_block(chunk) for chunk in ranked]

        dropped = 0
        while len(blocks) > 1 and len(self._join(header, blocks)) > budget:
            blocks.pop()
            dropped += 1

        context = self._join(header, blocks)
        truncated = False
        if len(context) > budget:
            top = ranked[0]
            label = format_page_label(top.pages)
            prefix = header + BLOCK_SEPARATOR + (f"{label}\n" if label else "")
            available = budget - len(prefix)
            if available <= 0:
                LOGGER.warning("Context budget of %s characters cannot hold any document text", budget)
                return ""
            context = prefix + truncate_at_sentence(top.text, available)
            truncated = True

        if dropped or truncated:
            LOGGER.warning(
                "Context budget of %s characters dropped %s chunks (top chunk truncated: %s)",
                budget,
                dropped,
                truncated,
            )
        emit_context_event(
            file_name=record.file_name,
            chunk_indices=[chunk.index for chunk in ranked[: len(blocks)]],
            context_chars=len(context),
            budget_chars=budget,
            dropped=dropped,
            truncated=truncated,
            fallback=fallback,
        )
        return context

    @staticmethod
    def _format_block(chunk: Chunk) -> str:
        label = format_page_label(chunk.pages)
        return f"{label}\n{chunk.text}" if label else chunk.text

    @staticmethod
    def _join(header: str, blocks: Sequence[str]) -> str:
        return BLOCK_SEPARATOR.join([header, *blocks])


_DEFAULT_ASSEMBLER: Optional[ContextAssembler] = None


def get_context_assembler() -> ContextAssembler:
    """Return a lazily created assembler using environment settings."""

    global _DEFAULT_ASSEMBLER
    if _DEFAULT_ASSEMBLER is None:
        _DEFAULT_ASSEMBLER = ContextAssembler(load_settings())
    return _DEFAULT_ASSEMBLER


def prepare_document_context(record: DocumentRecord | None, user_message: str | None) -> str:
    return get_context_assembler().prepare_document_context(record, user_message)


async def process_document_async(
    document_text: str | None,
    file_name: str,
    search_terms: Optional[Sequence[str]] = None,
    page_references: Optional[Sequence[int]] = None,
) -> DocumentRecord:
    return await get_context_assembler().process_document_async(
        document_text, file_name, search_terms, page_references
    )


__all__ = [
    "BLOCK_SEPARATOR",
    "ContextAssembler",
    "format_page_label",
    "get_context_assembler",
    "prepare_document_context",
    "process_document_async",
    "truncate_at_sentence",
]
