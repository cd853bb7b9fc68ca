"""Keyword, entity and page based relevance ranking over document chunks."""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Union

from .config import PipelineSettings
from .ingest.models import Chunk, DocumentRecord
from .query import QueryAnalysis, QueryAnalyzer
from .telemetry import emit_retriever_event

LOGGER = logging.getLogger(__name__)

Query = Union[str, QueryAnalysis]


@dataclass(slots=True)
class RankingConfig:
    keyword_weight: float = 1.0
    entity_weight: float = 2.0
    page_match_weight: float = 1.5
    top_k: int = 5
    min_relevance: float = 0.05
    neighbor_page_window: int = 2

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "RankingConfig":
        return cls(
            keyword_weight=settings.keyword_weight,
            entity_weight=settings.entity_weight,
            page_match_weight=settings.page_match_weight,
            top_k=settings.top_k,
            min_relevance=settings.min_relevance,
            neighbor_page_window=settings.neighbor_page_window,
        )


class RelevanceRanker:
    """Score chunks against a query and return the best matches first.

    The raw score of a chunk is ``keyword_hits * keyword_weight + entity_hits *
    entity_weight`` plus a page bonus when the chunk covers a referenced page.
    The bonus is scaled by the number of terms so that, with
    ``page_match_weight > 1``, a page match outranks any keyword-only match.
    Scores are divided by the theoretical maximum to land in ``[0, 1]``.

    ``min_relevance`` is capped at the score of a single keyword hit, so a
    chunk containing any query term is always eligible however long the query
    is. When a referenced page is not covered by any chunk, chunks on pages
    within ``neighbor_page_window`` of it fill the remaining ``top_k`` slots.
    """

    def __init__(
        self,
        config: Optional[RankingConfig] = None,
        analyzer: Optional[QueryAnalyzer] = None,
    ) -> None:
        self.config = config or RankingConfig()
        self.analyzer = analyzer or QueryAnalyzer()

    def find_relevant_chunks(self, record: DocumentRecord | None, query: Query) -> List[str]:
        """Return the texts of the most relevant chunks, best first."""

        return [chunk.text for chunk in self.rank(record, query)]

    def rank(self, record: DocumentRecord | None, query: Query) -> List[Chunk]:
        """Return scored working copies of the selected chunks, best first."""

        if record is None or record.is_empty:
            LOGGER.warning("No document chunks available for search")
            return []

        analysis = self.analyzer.analyze(query) if isinstance(query, str) else query
        if analysis.is_empty:
            return []

        started = time.perf_counter()
        scored = self.score_chunks(record.chunks, analysis)
        ordered = sorted(scored, key=lambda chunk: (-chunk.relevance_score, chunk.index))

        top_k = max(self.config.top_k, 0)
        floor = self.relevance_floor(analysis)
        selected = [
            chunk
            for chunk in ordered
            if chunk.relevance_score > 0.0 and chunk.relevance_score >= floor
        ][:top_k]

        missing = self._uncovered_pages(record, analysis)
        if missing and self.config.neighbor_page_window > 0 and len(selected) < top_k:
            neighbors = self._neighbor_pages(missing)
            taken = {chunk.index for chunk in selected}
            extra = [
                chunk
                for chunk in ordered
                if chunk.index not in taken and neighbors.intersection(chunk.pages)
            ]
            if extra:
                LOGGER.info(
                    "Pages %s not found; adding chunks from nearby pages %s",
                    sorted(missing),
                    sorted(neighbors),
                )
            selected.extend(extra[: top_k - len(selected)])

        emit_retriever_event(
            search_terms=analysis.search_terms,
            page_references=analysis.page_references,
            candidates=len(record.chunks),
            results=[
                {"index": chunk.index, "score": round(chunk.relevance_score, 4)} for chunk in selected
            ],
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return selected

    def relevance_floor(self, analysis: QueryAnalysis) -> float:
        """Return the effective floor: ``min_relevance`` or one keyword hit, whichever is lower."""

        maximum = self._maximum_score(analysis)
        if maximum <= 0 or self.config.keyword_weight <= 0:
            return self.config.min_relevance
        return min(self.config.min_relevance, self.config.keyword_weight / maximum)

    def score_chunks(self, chunks: Sequence[Chunk], analysis: QueryAnalysis) -> List[Chunk]:
        """Score every chunk for *analysis* without reordering them."""

        terms = analysis.search_terms
        patterns = [re.compile(rf"(?<!\w){re.escape(term)}", re.IGNORECASE) for term in terms]
        entity_patterns = [
            re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE) for term in terms
        ]
        requested = set(analysis.page_references)
        page_bonus = self._page_bonus(analysis)
        maximum = self._maximum_score(analysis)

        scored: List[Chunk] = []
        for chunk in chunks:
            keyword_hits = sum(1 for pattern in patterns if pattern.search(chunk.text))
            entity_hits = sum(
                1
                for pattern in entity_patterns
                if any(pattern.search(entity) for entity in chunk.key_entities)
            )
            raw = keyword_hits * self.config.keyword_weight + entity_hits * self.config.entity_weight
            if requested and requested.intersection(chunk.pages):
                raw += page_bonus
            score = min(max(raw / maximum, 0.0), 1.0) if maximum > 0 else 0.0
            scored.append(chunk.with_score(score))
        return scored

    def _page_bonus(self, analysis: QueryAnalysis) -> float:
        per_term = self.config.keyword_weight + self.config.entity_weight
        return self.config.page_match_weight * max(len(analysis.search_terms), 1) * per_term

    def _maximum_score(self, analysis: QueryAnalysis) -> float:
        per_term = self.config.keyword_weight + self.config.entity_weight
        bonus = self._page_bonus(analysis) if analysis.page_references else 0.0
        return len(analysis.search_terms) * per_term + bonus

    @staticmethod
    def _uncovered_pages(record: DocumentRecord, analysis: QueryAnalysis) -> Set[int]:
        return set(analysis.page_references).difference(record.pages)

    def _neighbor_pages(self, pages: Set[int]) -> Set[int]:
        window = self.config.neighbor_page_window
        return {
            neighbor
            for page in pages
            for neighbor in range(max(page - window, 1), page + window + 1)
            if neighbor != page
        }


__all__ = ["Query", "RankingConfig", "RelevanceRanker"]
