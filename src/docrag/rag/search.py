"""Online query path: embed → semantic cache → vector search.

The vector search is only called on a cache miss. Results of a miss are
stored in the cache so that repeated or paraphrased queries are answered
without touching the database.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from docrag.cache.semantic import SemanticCache
from docrag.config import RetrievalCfg
from docrag.db.models import Chunk
from docrag.db.repository import Repository
from docrag.rag.embeddings import EmbeddingProvider, TaskType

logger = logging.getLogger(__name__)

# (query_embedding, threshold, count) -> [(chunk, similarity), ...] best-first
VectorSearch = Callable[[list[float], float, int], list[tuple[Chunk, float]]]


@dataclass
class ScoredChunk:
    """A retrieved chunk with its cosine similarity to the query."""

    chunk: Chunk
    similarity: float


@dataclass
class SearchResult:
    """Ranked chunks for one query.

    Attributes:
        query: The query text as submitted.
        chunks: Matches, most similar first.
        latency_ms: Wall time of the vector search; 0 when served from cache.
        from_cache: True when the semantic cache answered the query.
    """

    query: str
    chunks: list[ScoredChunk] = field(default_factory=list)
    latency_ms: float = 0.0
    from_cache: bool = False


def repository_search(repo: Repository, vec_table: str) -> VectorSearch:
    """Adapt ``Repository.search_vec`` on *vec_table* to the VectorSearch signature.

    Raises:
        RuntimeError: If *vec_table* does not exist (nothing ingested yet).
    """
    if not repo.has_vec_table(vec_table):
        raise RuntimeError(
            f"Vector table '{vec_table}' does not exist. "
            "Run 'docrag ingest' first to populate the vector index."
        )

    def _search(embedding: list[float], threshold: float, count: int) -> list[tuple[Chunk, float]]:
        return repo.search_vec(vec_table, embedding, threshold=threshold, count=count)

    return _search


class CachedSearcher:
    """Answer queries through the semantic cache, falling back to vector search.

    Args:
        provider: Embeds the query text (task type ``RETRIEVAL_QUERY``).
        search: Vector search called on a cache miss.
        cache: Semantic cache instance; None disables caching.
        config: Similarity threshold and result count passed to *search*.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        search: VectorSearch,
        cache: SemanticCache | None = None,
        config: RetrievalCfg | None = None,
    ) -> None:
        self._provider = provider
        self._search = search
        self._cache = cache
        self._config = config or RetrievalCfg()

    def search(
        self,
        query: str,
        *,
        threshold: float | None = None,
        count: int | None = None,
    ) -> SearchResult:
        embedding = self._provider.embed(query, TaskType.RETRIEVAL_QUERY)

        if self._cache is not None:
            cached = self._cache.check(query, embedding)
            if cached is not None:
                # A paraphrase hit reports the query that was asked, not the stored one.
                if isinstance(cached, SearchResult):
                    return replace(cached, query=query)
                return cached

        started = time.perf_counter()
        matches = self._search(
            embedding,
            self._config.threshold if threshold is None else threshold,
            self._config.count if count is None else count,
        )
        latency_ms = (time.perf_counter() - started) * 1000

        result = SearchResult(
            query=query,
            chunks=[ScoredChunk(chunk=c, similarity=s) for c, s in matches],
            latency_ms=latency_ms,
        )
        logger.debug("Vector search for %r: %d matches in %.1f ms", query, len(matches), latency_ms)

        if self._cache is not None:
            self._cache.set(query, embedding, result)
        return result
