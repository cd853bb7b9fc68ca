"""Document-grounded chat: chunking, retrieval and context assembly."""

from .context import ContextAssembler
from .ingest.models import Chunk, DocumentRecord
from .query import QueryAnalysis, QueryAnalyzer
from .retriever import RelevanceRanker

__all__ = [
    "Chunk",
    "ContextAssembler",
    "DocumentRecord",
    "QueryAnalysis",
    "QueryAnalyzer",
    "RelevanceRanker",
]
