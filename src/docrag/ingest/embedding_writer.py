"""Embedding writer — embed chunk content and upsert chunks + vectors.

What is embedded is the full chunk content, page context header included.
Chunks are upserted by id, so re-running an ingest updates rows in place.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from docrag.db.models import Chunk
from docrag.db.repository import Repository
from docrag.rag.embeddings import EmbeddingProvider, TaskType, validate_api_key

logger = logging.getLogger(__name__)


class EmbeddingWriter:
    """Write chunks to the store together with their document embeddings.

    For each batch of ``provider.config.batch_size`` chunks:
    1. Embed the chunk contents with task type ``RETRIEVAL_DOCUMENT``.
    2. Upsert each chunk via ``Repository.upsert_chunk()``.
    3. Replace its vector via ``Repository.upsert_embedding()``.

    Args:
        repo:     Open Repository instance.
        provider: Embedding provider (model, dimensions, batch size).
    """

    def __init__(self, repo: Repository, provider: EmbeddingProvider | None = None) -> None:
        self._repo = repo
        self._provider = provider or EmbeddingProvider()

    def write(
        self,
        chunks: list[Chunk],
        vec_table: str,
        on_progress: Callable[[int], None] | None = None,
    ) -> list[str]:
        """Embed *chunks* and persist them. Returns the stored chunk ids in order."""
        validate_api_key(self._provider.config.model)
        size = self._provider.config.batch_size
        total_batches = (len(chunks) + size - 1) // size
        written: list[str] = []

        for batch_num, start in enumerate(range(0, len(chunks), size), start=1):
            batch = chunks[start : start + size]
            logger.info("Embedding batch %d/%d (%d chunks)", batch_num, total_batches, len(batch))
            vectors = self._provider.embed_batch(
                [c.content for c in batch], TaskType.RETRIEVAL_DOCUMENT
            )
            for chunk, vector in zip(batch, vectors):
                self._repo.upsert_chunk(chunk)
                self._repo.upsert_embedding(vec_table, chunk.id, vector)
                written.append(chunk.id)
                if on_progress is not None:
                    on_progress(len(written) - 1)

        return written
