"""Page chunker — properties, methods and markdown body of a documentation page.

Chunk layout per page, in order:
  1. one ``properties`` chunk listing every property (if any)
  2. one ``method`` chunk per method, never split
  3. ``documentation`` chunks from the markdown body (see MarkdownChunker)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from docrag.db.models import Chunk, Method, Page, Property
from docrag.errors import ChunkIdCollisionError, PageError
from docrag.ingest.markdown import MarkdownChunker

logger = logging.getLogger(__name__)

_PROGRESS_EVERY = 10


@dataclass
class ChunkingStats:
    """Per-batch counters returned by ``PageChunker.process_pages``."""

    total_pages: int = 0
    total_chunks: int = 0
    chunk_types: dict[str, int] = field(default_factory=dict)
    failed_pages: list[tuple[int, str]] = field(default_factory=list)  # (index, reason)

    @property
    def average_chunks_per_page(self) -> float:
        return self.total_chunks / self.total_pages if self.total_pages else 0.0


class PageChunker(MarkdownChunker):
    """Turn structured documentation pages into chunks ready for embedding.

    Args:
        chunk_size: Target chunk size in tokens (default 450).
        overlap: Words shared between windows of an oversized section (default 68).
        code_language: Fence language for method code examples.
    """

    def __init__(
        self,
        chunk_size: int = 450,
        overlap: int = 68,
        code_language: str = "javascript",
    ) -> None:
        super().__init__(chunk_size=chunk_size, overlap=overlap)
        self.code_language = code_language

    def process_page(self, page: Page | Mapping[str, Any]) -> list[Chunk]:
        """Chunk a single page.

        Raises:
            PageError: If *page* is a malformed record.
        """
        if not isinstance(page, Page):
            page = Page.from_dict(page)

        context = self.page_context(page)
        chunks: list[Chunk] = []

        if page.properties:
            chunks.append(self.property_chunk(page.properties, context, page.url))

        for method in page.methods:
            chunks.append(self.method_chunk(method, context, page.url, page.component_type))

        if page.markdown:
            chunks.extend(self.chunk_markdown(page.markdown, page.url, context))

        return chunks

    def process_pages(
        self,
        pages: Iterable[Page | Mapping[str, Any]],
        *,
        strict: bool = False,
    ) -> tuple[list[Chunk], ChunkingStats]:
        """Chunk *pages* in order.

        A malformed page is logged and recorded in ``stats.failed_pages``;
        the rest of the batch continues unless *strict* is set.

        Raises:
            PageError: Only when *strict* is True.
            ChunkIdCollisionError: If two different logical chunks share an id.
        """
        pages = list(pages)
        stats = ChunkingStats(total_pages=len(pages))
        all_chunks: list[Chunk] = []
        seen: dict[str, tuple[str, str]] = {}

        for index, page in enumerate(pages):
            if (index + 1) % _PROGRESS_EVERY == 0:
                logger.info("Processing page %d/%d...", index + 1, len(pages))

            try:
                page_chunks = self.process_page(page)
            except PageError as exc:
                if strict:
                    raise
                logger.warning("Skipping page %d: %s", index, exc)
                stats.failed_pages.append((index, str(exc)))
                continue

            for chunk in page_chunks:
                _check_collision(seen, chunk)
                stats.chunk_types[chunk.chunk_type] = stats.chunk_types.get(chunk.chunk_type, 0) + 1
            all_chunks.extend(page_chunks)

        stats.total_chunks = len(all_chunks)
        logger.info(
            "Chunked %d pages into %d chunks (%.1f per page)",
            stats.total_pages, stats.total_chunks, stats.average_chunks_per_page,
        )
        for chunk_type, count in stats.chunk_types.items():
            logger.info("  %s: %d", chunk_type, count)

        return all_chunks, stats

    # ------------------------------------------------------------------
    # Chunk builders
    # ------------------------------------------------------------------

    def property_chunk(self, properties: list[Property], context: str, url: str) -> Chunk:
        """All properties of a page collapsed into one chunk."""
        lines = [context, "", "## Properties", ""]
        for prop in properties:
            lines += [
                f"### {prop.name}",
                f"- **Type:** {prop.type}",
                f"- **Description:** {prop.description}",
                "",
            ]
        return Chunk(
            id=self.chunk_id(url, "properties"),
            content="\n".join(lines).strip(),
            metadata={
                "source_url": url,
                "chunk_type": "properties",
                "property_count": len(properties),
                "property_names": [p.name for p in properties],
            },
            slot="properties",
        )

    def method_chunk(
        self,
        method: Method,
        context: str,
        url: str,
        component_type: str | None = None,
    ) -> Chunk:
        """One method with its parameters, return type and example, kept whole."""
        content = f"{context}\n\n## Method: {method.signature}\n\n"
        content += f"{method.description or 'No description available'}\n\n"

        if method.parameters:
            content += "### Parameters:\n"
            for param in method.parameters:
                content += f"- **{param.name}** ({param.type}): {param.description}\n"
            content += "\n"

        if method.return_type:
            content += f"### Returns:\n{method.return_type}\n\n"

        if method.code_example:
            content += f"### Example:\n```{self.code_language}\n{method.code_example}\n```\n"

        return Chunk(
            id=self.chunk_id(url, method.signature),
            content=content.strip(),
            metadata={
                "source_url": url,
                "chunk_type": "method",
                "component_type": component_type,
                "method_signature": method.signature,
                "method_name": method.name,
                "has_parameters": bool(method.parameters),
                "has_example": bool(method.code_example),
                "return_type": method.return_type,
            },
            slot=method.signature,
        )


def _check_collision(seen: dict[str, tuple[str, str]], chunk: Chunk) -> None:
    key = (chunk.source_url, chunk.slot)
    previous = seen.setdefault(chunk.id, key)
    if previous != key:
        raise ChunkIdCollisionError(chunk.id, previous, key)
