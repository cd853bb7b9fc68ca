"""Common exceptions raised by the document pipeline."""
from __future__ import annotations


class PipelineInvariantError(RuntimeError):
    """Raised when chunk or record invariants are broken by the pipeline itself."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause
