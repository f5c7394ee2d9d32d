"""docrag ingest pipeline — page chunking, loading and embedding."""

from docrag.ingest.base import BaseChunker
from docrag.ingest.loader import load_pages
from docrag.ingest.markdown import MarkdownChunker
from docrag.ingest.page import ChunkingStats, PageChunker

__all__ = [
    "BaseChunker",
    "ChunkingStats",
    "MarkdownChunker",
    "PageChunker",
    "load_pages",
]
