"""API router exposing document upload and context endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from pydantic import BaseModel, Field

from ..services.documents import (
    ContextResult,
    DocumentChatService,
    UploadResult,
    decode_text,
    get_document_service,
)

router = APIRouter(prefix="/sessions", tags=["documents"])


class UploadResponse(BaseModel):
    """Response body returned from the upload endpoint."""

    status: str
    session_id: str
    file_name: str
    chunk_count: int
    page_count: int
    language: str | None
    truncated: bool
    duration_seconds: float


class ContextRequest(BaseModel):
    """Request body accepted by the context endpoint."""

    message: str = Field("", description="User chat message the context should answer.")


class ContextResponse(BaseModel):
    """Response payload for the context endpoint."""

    session_id: str
    has_document: bool
    file_name: str | None
    chunk_count: int
    context: str


class DocumentResponse(BaseModel):
    """Summary of the document currently held for a session."""

    session_id: str
    file_name: str
    chunk_count: int
    total_length: int
    page_count: int
    pages: list[int]
    language: str | None
    truncated: bool
    summary: str


@router.post("/{session_id}/document", response_model=UploadResponse)
async def upload_document(
    session_id: str,
    file: UploadFile = File(...),
    service: DocumentChatService = Depends(get_document_service),
) -> UploadResponse:
    """Replace the session's document with the uploaded, already extracted text."""

    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    text = decode_text(contents)
    result: UploadResult = await service.upload(session_id, text, file.filename or "document.txt")
    return UploadResponse(
        status="ok",
        session_id=result.session_id,
        file_name=result.file_name,
        chunk_count=result.chunk_count,
        page_count=result.page_count,
        language=result.language,
        truncated=result.truncated,
        duration_seconds=result.duration_seconds,
    )


@router.post("/{session_id}/context", response_model=ContextResponse)
async def document_context(
    session_id: str,
    request: ContextRequest,
    service: DocumentChatService = Depends(get_document_service),
) -> ContextResponse:
    """Return the context block for a chat message; empty when no document is stored."""

    result: ContextResult = service.context_for(session_id, request.message)
    return ContextResponse(
        session_id=result.session_id,
        has_document=result.has_document,
        file_name=result.file_name,
        chunk_count=result.chunk_count,
        context=result.context,
    )


@router.get("/{session_id}/document", response_model=DocumentResponse)
async def get_document(
    session_id: str,
    service: DocumentChatService = Depends(get_document_service),
) -> DocumentResponse:
    record = service.document_info(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="No document stored for this session")
    return DocumentResponse(
        session_id=session_id,
        file_name=record.file_name,
        chunk_count=len(record.chunks),
        total_length=record.total_length,
        page_count=record.page_count,
        pages=list(record.pages),
        language=record.language,
        truncated=record.truncated,
        summary=record.summary(),
    )


@router.delete("/{session_id}/document", status_code=204)
async def clear_document(
    session_id: str,
    service: DocumentChatService = Depends(get_document_service),
) -> Response:
    service.clear(session_id)
    return Response(status_code=204)
