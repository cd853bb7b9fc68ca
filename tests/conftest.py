"""Shared fixtures for the document pipeline tests."""
from __future__ import annotations

from typing import Iterable, Sequence

import pytest

from docchat.config import PipelineSettings
from docchat.context import ContextAssembler
from docchat.ingest.models import Chunk, DocumentRecord
from docchat.ingest.pipeline import DocumentPipeline


class StubLanguageDetector:
    """Deterministic stand-in so tests do not depend on langdetect's models."""

    def __init__(self, language: str | None = "en") -> None:
        self.language = language
        self.calls = 0

    def detect(self, text: str) -> str | None:
        self.calls += 1
        return self.language


def make_record(
    texts: Sequence[str],
    *,
    pages: Sequence[Iterable[int]] | None = None,
    entities: Sequence[Iterable[str]] | None = None,
    file_name: str = "document.txt",
) -> DocumentRecord:
    """Build a record from plain texts with cumulative offsets."""

    chunks = []
    offset = 0
    for index, text in enumerate(texts):
        chunks.append(
            Chunk(
                index=index,
                text=text,
                start_position=offset,
                end_position=offset + len(text),
                pages=tuple(pages[index]) if pages else (),
                key_entities=tuple(entities[index]) if entities else (),
            )
        )
        offset += len(text) + 2
    return DocumentRecord(file_name=file_name, chunks=tuple(chunks), total_length=offset)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def assembler_factory():
    def _build(**overrides) -> ContextAssembler:
        settings = PipelineSettings(**overrides)
        return ContextAssembler(
            settings,
            pipeline=DocumentPipeline(settings, language_detector=StubLanguageDetector()),
        )

    return _build


@pytest.fixture
def assembler(assembler_factory) -> ContextAssembler:
    return assembler_factory()


@pytest.fixture
def paginated_text() -> str:
    return (
        "[PAGE 1 OF 3]\n"
        "Acme Group Lease Agreement. This agreement sets out the obligations of the tenant "
        "and the landlord for the office premises.\n\n"
        "[PAGE 2 OF 3]\n"
        "Refunds of the security deposit are issued within thirty days after the lease ends. "
        "Deductions may be made for damage beyond normal wear.\n\n"
        "[PAGE 3 OF 3]\n"
        "The tenant may terminate early with ninety days written notice. Notices must be "
        "delivered to the registered office of Acme Group."
    )
