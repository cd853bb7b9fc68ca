"""Service layer wiring the pipeline to session storage."""

from .documents import ContextResult, DocumentChatService, UploadResult, get_document_service

__all__ = ["ContextResult", "DocumentChatService", "UploadResult", "get_document_service"]
