"""Markdown chunker — heading-aware sections with word-window fallback."""

from __future__ import annotations

import re

from docrag.db.models import Chunk
from docrag.ingest.base import BaseChunker

# Zero-width split point before every H1, H2 or H3 heading line.
_SECTION_SPLIT_RE = re.compile(r"(?=^#{1,3} )", re.MULTILINE)

_CODE_FENCE = "```"

# Sections larger than this many chunk sizes are split into word windows.
_OVERSIZE_FACTOR = 3


class MarkdownChunker(BaseChunker):
    """Split a page's markdown body into ``documentation`` chunks.

    Strategy:
    - Split before every H1/H2/H3 heading; the heading stays with the text
      that follows it. Content before the first heading is its own section.
    - Each section becomes one chunk, unless its estimated size exceeds
      three times ``chunk_size``; then it is cut into overlapping word windows.
    - Every chunk is prefixed with the page context header.
    """

    def split_into_sections(self, markdown: str) -> list[str]:
        """Return the non-blank heading-delimited sections of *markdown*."""
        return [s for s in _SECTION_SPLIT_RE.split(markdown) if s.strip()]

    def chunk_markdown(self, markdown: str, url: str, context: str) -> list[Chunk]:
        """Chunk *markdown* from the page at *url*.

        Ids use ``section_<i>`` for whole sections and ``section_<i>_<j>`` for
        the j-th window of an oversized section.
        """
        chunks: list[Chunk] = []
        for index, section in enumerate(self.split_into_sections(markdown)):
            if self.estimate_tokens(section) > self.chunk_size * _OVERSIZE_FACTOR:
                for sub_index, window in enumerate(self.split_word_window(section)):
                    slot = f"section_{index}_{sub_index}"
                    chunks.append(
                        self._documentation_chunk(
                            url, slot, context, window,
                            section_index=index, sub_index=sub_index,
                        )
                    )
            else:
                chunks.append(
                    self._documentation_chunk(
                        url, f"section_{index}", context, section.strip(), section_index=index
                    )
                )
        return chunks

    def _documentation_chunk(
        self,
        url: str,
        slot: str,
        context: str,
        body: str,
        **fields: int,
    ) -> Chunk:
        return Chunk(
            id=self.chunk_id(url, slot),
            content=f"{context}\n\n{body}",
            metadata={
                "source_url": url,
                "chunk_type": "documentation",
                **fields,
                "has_code": _CODE_FENCE in body,
            },
            slot=slot,
        )
