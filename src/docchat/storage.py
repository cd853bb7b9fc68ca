"""Per-session storage of processed document records."""
from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Protocol

from .ingest.models import DocumentRecord

LOGGER = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Keyed store used by the chat flow to keep one record per session."""

    def store(self, session_id: str, record: DocumentRecord) -> None:
        """Replace the record held for *session_id*."""

    def get(self, session_id: str) -> Optional[DocumentRecord]:
        """Return the record for *session_id* or ``None``."""

    def clear(self, session_id: str) -> bool:
        """Forget the record for *session_id*; return whether one existed."""


def _require_session_id(session_id: str) -> str:
    if not session_id or not session_id.strip():
        raise ValueError("session_id must be a non-empty string")
    return session_id


class InMemoryDocumentStore:
    """Thread-safe in-process implementation of :class:`DocumentStore`."""

    def __init__(self) -> None:
        self._records: Dict[str, DocumentRecord] = {}
        self._lock = threading.Lock()

    def store(self, session_id: str, record: DocumentRecord) -> None:
        _require_session_id(session_id)
        with self._lock:
            self._records[session_id] = record
        LOGGER.info(
            "Stored document %s with %s chunks for session %s",
            record.file_name,
            len(record.chunks),
            session_id,
        )

    def get(self, session_id: str) -> Optional[DocumentRecord]:
        if not session_id:
            return None
        with self._lock:
            return self._records.get(session_id)

    def clear(self, session_id: str) -> bool:
        if not session_id:
            return False
        with self._lock:
            removed = self._records.pop(session_id, None)
        if removed is not None:
            LOGGER.info("Cleared document %s for session %s", removed.file_name, session_id)
        return removed is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


__all__ = ["DocumentStore", "InMemoryDocumentStore"]
