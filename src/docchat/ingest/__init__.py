"""Document ingestion: chunking, metadata enrichment and record assembly."""
from __future__ import annotations

from .chunking import ChunkingConfig, SegmentChunker, chunk_text
from .entities import EntityExtractor, HeuristicEntityExtractor
from .metadata import MetadataEnhancer, enhance
from .models import Chunk, DocumentRecord
from .pipeline import DocumentPipeline

__all__ = [
    "Chunk",
    "ChunkingConfig",
    "DocumentPipeline",
    "DocumentRecord",
    "EntityExtractor",
    "HeuristicEntityExtractor",
    "MetadataEnhancer",
    "SegmentChunker",
    "chunk_text",
    "enhance",
]
