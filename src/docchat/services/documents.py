"""Session document service used by the HTTP layer."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from ..config import load_settings
from ..context import ContextAssembler
from ..ingest.models import DocumentRecord
from ..storage import DocumentStore, InMemoryDocumentStore
from ..telemetry import log_event

LOGGER = logging.getLogger(__name__)


def decode_text(data: bytes) -> str:
    """Decode an extracted-text upload, falling back to latin-1 for legacy encodings."""

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        LOGGER.info("Upload is not valid UTF-8; decoding as latin-1")
        return data.decode("latin-1")


@dataclass(slots=True)
class UploadResult:
    """Structured result returned from :meth:`DocumentChatService.upload`."""

    session_id: str
    file_name: str
    chunk_count: int
    page_count: int
    language: str | None
    truncated: bool
    duration_seconds: float


@dataclass(slots=True)
class ContextResult:
    """Structured result returned from :meth:`DocumentChatService.context_for`."""

    session_id: str
    has_document: bool
    file_name: str | None
    chunk_count: int
    context: str


class DocumentChatService:
    """Glue between the session store and the context assembler."""

    def __init__(
        self,
        *,
        assembler: ContextAssembler | None = None,
        store: DocumentStore | None = None,
    ) -> None:
        self.assembler = assembler or ContextAssembler(load_settings())
        self.store: DocumentStore = store or InMemoryDocumentStore()

    async def upload(self, session_id: str, text: str, file_name: str) -> UploadResult:
        started = time.perf_counter()
        record = await self.assembler.process_document_async(text, file_name)
        self.store.store(session_id, record)
        duration = time.perf_counter() - started

        if record.is_empty:
            LOGGER.warning("Document %s for session %s produced no usable chunks", file_name, session_id)
        log_event(
            LOGGER,
            "document.upload",
            session_id=session_id,
            duration_ms=duration * 1000.0,
            details={"file": file_name, "chunks": len(record.chunks), "truncated": record.truncated},
        )
        return UploadResult(
            session_id=session_id,
            file_name=file_name,
            chunk_count=len(record.chunks),
            page_count=record.page_count,
            language=record.language,
            truncated=record.truncated,
            duration_seconds=duration,
        )

    def context_for(self, session_id: str, message: str) -> ContextResult:
        record = self.store.get(session_id)
        if record is None:
            LOGGER.info("No document stored for session %s; answering without grounding", session_id)
            return ContextResult(
                session_id=session_id,
                has_document=False,
                file_name=None,
                chunk_count=0,
                context="",
            )

        context = self.assembler.prepare_document_context(record, message)
        return ContextResult(
            session_id=session_id,
            has_document=not record.is_empty,
            file_name=record.file_name,
            chunk_count=len(record.chunks),
            context=context,
        )

    def document_info(self, session_id: str) -> Optional[DocumentRecord]:
        return self.store.get(session_id)

    def clear(self, session_id: str) -> bool:
        return self.store.clear(session_id)


_document_service: DocumentChatService | None = None


def get_document_service() -> DocumentChatService:
    """FastAPI dependency returning the shared :class:`DocumentChatService` instance."""

    global _document_service
    if _document_service is None:
        _document_service = DocumentChatService()
    return _document_service
