"""Data models produced by the ingestion pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Mapping, Tuple

from ..errors import PipelineInvariantError


@dataclass(frozen=True, slots=True)
class Chunk:
    """A contiguous segment of the source document with its metadata."""

    index: int
    text: str
    start_position: int
    end_position: int
    pages: Tuple[int, ...] = ()
    key_entities: Tuple[str, ...] = ()
    relevance_score: float = 0.0

    def __post_init__(self) -> None:
        if self.index < 0:
            raise PipelineInvariantError(f"Chunk index must be non-negative, got {self.index}")
        if self.start_position >= self.end_position:
            raise PipelineInvariantError(
                f"Chunk {self.index} has start {self.start_position} >= end {self.end_position}"
            )
        if not 0.0 <= self.relevance_score <= 1.0:
            raise PipelineInvariantError(
                f"Chunk {self.index} relevance score {self.relevance_score} outside [0, 1]"
            )

    def with_score(self, score: float) -> "Chunk":
        """Return a working copy carrying *score*; the original stays untouched."""
        return replace(self, relevance_score=score)


@dataclass(frozen=True, slots=True)
class DocumentRecord:
    """All chunks and summary fields for one uploaded document."""

    file_name: str
    chunks: Tuple[Chunk, ...] = ()
    total_length: int = 0
    page_count: int = 0
    language: str | None = None
    entity_index: Mapping[str, Tuple[int, ...]] = field(default_factory=dict)
    truncated: bool = False
    uploaded_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )

    def __post_init__(self) -> None:
        previous_end = 0
        for expected, chunk in enumerate(self.chunks):
            if chunk.index != expected:
                raise PipelineInvariantError(
                    f"Chunk indices out of order in {self.file_name!r}: "
                    f"expected {expected}, got {chunk.index}"
                )
            if chunk.start_position < previous_end:
                raise PipelineInvariantError(
                    f"Chunk {chunk.index} in {self.file_name!r} starts at {chunk.start_position} "
                    f"before the previous chunk ended at {previous_end}"
                )
            previous_end = chunk.end_position

    @classmethod
    def empty(cls, file_name: str, total_length: int = 0) -> "DocumentRecord":
        return cls(file_name=file_name, total_length=total_length)

    @property
    def is_empty(self) -> bool:
        return not self.chunks

    @property
    def pages(self) -> Tuple[int, ...]:
        return tuple(sorted({page for chunk in self.chunks for page in chunk.pages}))

    def full_text(self) -> str:
        return "\n\n".join(chunk.text for chunk in self.chunks)

    def summary(self) -> str:
        """Human readable statistics about the record."""

        pages = self.pages
        lines = [
            f"Document: {self.file_name}",
            f"Total Length: {self.total_length} characters",
            f"Chunks: {len(self.chunks)}",
            f"Page Coverage: {len(pages)} pages",
        ]
        if pages:
            lines.append(f"Pages: {', '.join(str(page) for page in pages)}")
        if self.language:
            lines.append(f"Language: {self.language}")
        if self.truncated:
            lines.append("Truncated: chunk limit reached")
        lines.append(f"Key Entities: {len(self.entity_index)}")
        for entity, indices in self.entity_index.items():
            lines.append(f"  - {entity}: {len(indices)} mentions")
        return "\n".join(lines)


__all__ = ["Chunk", "DocumentRecord"]
