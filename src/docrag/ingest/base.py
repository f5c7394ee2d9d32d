"""Base chunker: size validation, token estimation, word windows, chunk ids."""

from __future__ import annotations

import hashlib
import math

from docrag.db.models import Page

_ID_LENGTH = 16


class BaseChunker:
    """Shared machinery for the page and markdown chunkers.

    Token counting uses a 4-chars-per-token approximation rounded up; no
    external tokenizer dependency is required and counts are not exact.
    The same estimator must be used everywhere sizes are compared.

    Args:
        chunk_size: Target chunk length in tokens (words for window splits).
        overlap: Words shared between consecutive windows of a split section.
    """

    def __init__(self, chunk_size: int = 450, overlap: int = 68) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if not 0 <= overlap < chunk_size:
            raise ValueError("overlap must be in [0, chunk_size)")
        self.chunk_size = chunk_size
        self.overlap = overlap

    @property
    def step(self) -> int:
        """Word offset between the starts of consecutive windows."""
        return self.chunk_size - self.overlap

    @staticmethod
    def estimate_tokens(text: str) -> int:
        """Approximate token count: ceil(characters / 4)."""
        return math.ceil(len(text) / 4)

    @staticmethod
    def chunk_id(url: str, identifier: str) -> str:
        """Content-addressed id: md5 of ``"<url>_<identifier>"``, first 16 hex chars.

        Same url + same logical slot always yields the same id, so storage can
        upsert on re-ingestion.
        """
        digest = hashlib.md5(f"{url}_{identifier}".encode("utf-8"))
        return digest.hexdigest()[:_ID_LENGTH]

    @staticmethod
    def page_context(page: Page) -> str:
        """Header prepended to every chunk so it is self-describing."""
        return (
            f"# {page.title}\n"
            f"Component Type: {page.component_type or 'Documentation'}\n"
            f"URL: {page.url}"
        ).strip()

    def split_word_window(self, text: str) -> list[str]:
        """Split *text* into windows of ``chunk_size`` words.

        Windows start at word offsets 0, step, 2*step, ... for every offset
        inside the text, so consecutive windows share ``overlap`` words.
        Words are re-joined with single spaces.
        """
        words = text.split()
        return [
            " ".join(words[start : start + self.chunk_size])
            for start in range(0, len(words), self.step)
        ]
