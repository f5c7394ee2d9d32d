"""Exception hierarchy shared by the chunking pipeline and the semantic cache."""

from __future__ import annotations


class DocragError(Exception):
    """Base class for all docrag errors."""


class PageError(DocragError, ValueError):
    """A page record is structurally malformed (missing title/url, bad field types)."""


class ChunkIdCollisionError(DocragError):
    """Two different logical chunks hashed to the same 16-char id.

    Storage upserts by id, so continuing would overwrite an unrelated chunk.
    """

    def __init__(self, chunk_id: str, first: tuple[str, str], second: tuple[str, str]) -> None:
        self.chunk_id = chunk_id
        self.first = first
        self.second = second
        super().__init__(
            f"Chunk id collision on '{chunk_id}': "
            f"{first[0]} [{first[1]}] and {second[0]} [{second[1]}]"
        )


class DimensionMismatchError(DocragError, ValueError):
    """Two vectors compared for similarity have different lengths."""


class EmbeddingDimensionError(DocragError):
    """The embedding provider returned a vector of unexpected dimensionality."""
