"""Structured step events for the document pipeline."""

from __future__ import annotations

import logging
import time
import traceback
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

LOGGER = logging.getLogger("docchat.telemetry")


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    session_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if session_id:
        event["session_id"] = session_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_pipeline_event(
    step: str,
    *,
    file_name: str,
    length: int,
    chunks: int | None = None,
    pages: int | None = None,
    language: str | None = None,
    truncated: bool | None = None,
) -> None:
    details = {
        "file": file_name,
        "length": length,
        "chunks": chunks,
        "pages": pages,
        "language": language,
        "truncated": truncated,
    }
    log_event(LOGGER, step, details=details)


def emit_retriever_event(
    *,
    search_terms: Iterable[str],
    page_references: Iterable[int],
    candidates: int,
    results: list[dict[str, Any]],
    duration_ms: float,
) -> None:
    details = {
        "search_terms": list(search_terms),
        "page_references": list(page_references),
        "candidates": candidates,
        "results": results,
    }
    log_event(LOGGER, "retriever.rank", duration_ms=duration_ms, details=details)


def emit_context_event(
    *,
    file_name: str,
    chunk_indices: Iterable[int],
    context_chars: int,
    budget_chars: int,
    dropped: int,
    truncated: bool,
    fallback: bool,
) -> None:
    details = {
        "file": file_name,
        "chunks": list(chunk_indices),
        "context_chars": context_chars,
        "budget_chars": budget_chars,
        "dropped": dropped,
        "truncated": truncated,
        "fallback": fallback,
    }
    log_event(LOGGER, "context.prepare", details=details)


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    log_event(logger or LOGGER, f"{step}.start", level="debug", details=fields)
    try:
        yield
    except Exception as error:
        log_event(logger or LOGGER, f"{step}.error", level="error", details=fields, exc=error)
        raise
    finally:
        end = time.perf_counter()
        log_event(
            logger or LOGGER,
            f"{step}.complete",
            level="debug",
            duration_ms=(end - start) * 1000.0,
            details=fields,
        )


__all__ = [
    "emit_context_event",
    "emit_pipeline_event",
    "emit_retriever_event",
    "log_event",
    "traced_duration",
]
