"""Semantic query cache — approximate matching on query embeddings.

A lookup returns the cached result of the most similar previous query whose
cosine similarity is at least ``similarity_threshold``. Expired entries are
swept inline on every lookup; there is no background task.

Eviction is FIFO by insertion time: when full, the entry with the oldest
``timestamp`` is dropped. Hits do not refresh ``timestamp``, so this is not
an LRU policy.

Not safe for uncoordinated concurrent mutation. ``check`` followed by ``set``
is not atomic; two identical concurrent misses may both insert an entry.
"""

from __future__ import annotations

import copy
import logging
import time
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, fields, is_dataclass, replace
from typing import Any

from docrag.cache.similarity import cosine_similarity

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _wall_clock_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class CacheEntry:
    """One cached query result. Only ``hits`` ever changes after insertion."""

    query: str
    embedding: list[float]
    result: Any
    timestamp: float
    hits: int = 0


@dataclass
class CacheEntryStats:
    query: str
    hits: int
    age: float  # ms


@dataclass
class CacheStats:
    """Snapshot returned by ``SemanticCache.get_stats()``."""

    size: int
    max_size: int
    ttl: int
    similarity_threshold: float
    total_hits: int
    entries: list[CacheEntryStats] = field(default_factory=list)
    lookups: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        return (self.lookups - self.misses) / self.lookups if self.lookups else 0.0


class SemanticCache:
    """Bounded, expiring cache keyed by embedding similarity.

    Args:
        max_size: Maximum number of entries kept by ``set`` (default 100).
        ttl: Entry lifetime in milliseconds (default 300 000 = 5 minutes).
        similarity_threshold: Minimum cosine similarity for a hit (default 0.95).
        clock: Returns the current time in milliseconds. Defaults to a
            monotonic clock; tests inject a fake one.
    """

    def __init__(
        self,
        max_size: int = 100,
        ttl: int = 300_000,
        similarity_threshold: float = 0.95,
        clock: Clock | None = None,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        self.max_size = max_size
        self.ttl = ttl
        self.similarity_threshold = similarity_threshold
        self._clock = clock or _wall_clock_ms
        self._entries: dict[str, CacheEntry] = {}
        self._lookups = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def check(self, query: str, query_embedding: list[float]) -> Any | None:
        """Return the cached result for a semantically similar query, or None.

        The returned result is a copy marked ``from_cache=True`` with a
        latency of 0, meaning no search was performed.

        Raises:
            DimensionMismatchError: If *query_embedding* and a stored
                embedding differ in length.
        """
        self._lookups += 1
        self._sweep_expired(self._clock())

        best: CacheEntry | None = None
        best_similarity = 0.0
        for entry in self._entries.values():
            similarity = cosine_similarity(query_embedding, entry.embedding)
            if similarity >= self.similarity_threshold and (
                best is None or similarity > best_similarity
            ):
                best = entry
                best_similarity = similarity

        if best is None:
            self._misses += 1
            return None

        best.hits += 1
        logger.debug(
            "Cache hit (similarity %.2f%%) for query %r", best_similarity * 100, query
        )
        return _mark_cached(best.result)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set(self, query: str, query_embedding: list[float], result: Any) -> None:
        """Store a copy of *result* for *query*, evicting the oldest entry when full."""
        now = self._clock()
        if len(self._entries) >= self.max_size:
            self._evict_oldest()

        self._entries[self._new_key(now)] = CacheEntry(
            query=query,
            embedding=list(query_embedding),
            result=copy.deepcopy(result),
            timestamp=now,
        )
        logger.debug(
            "Cached query %r (cache size: %d/%d)", query, len(self._entries), self.max_size
        )

    def preload(self, entries: Iterable[Mapping[str, Any]]) -> int:
        """Bulk-insert ``{query, embedding, result}`` records for warm-up.

        Capacity and TTL are not checked, so a preload may exceed ``max_size``
        until later inserts evict down.

        Returns:
            Number of entries inserted.
        """
        now = self._clock()
        count = 0
        for record in entries:
            self._entries[self._new_key(now)] = CacheEntry(
                query=record["query"],
                embedding=list(record["embedding"]),
                result=record["result"],
                timestamp=now,
            )
            count += 1
        logger.info("Preloaded %d entries into semantic cache", count)
        return count

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        logger.info("Semantic cache cleared")

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_stats(self) -> CacheStats:
        """Return size, limits, hit totals and per-entry diagnostics.

        Expired entries are swept first. ``entries`` is sorted by hit count,
        highest first.
        """
        now = self._clock()
        self._sweep_expired(now)
        entries = [
            CacheEntryStats(query=e.query, hits=e.hits, age=now - e.timestamp)
            for e in self._entries.values()
        ]
        entries.sort(key=lambda e: e.hits, reverse=True)
        return CacheStats(
            size=len(self._entries),
            max_size=self.max_size,
            ttl=self.ttl,
            similarity_threshold=self.similarity_threshold,
            total_hits=sum(e.hits for e in entries),
            entries=entries,
            lookups=self._lookups,
            misses=self._misses,
            evictions=self._evictions,
            expirations=self._expirations,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _sweep_expired(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e.timestamp > self.ttl]
        for key in expired:
            del self._entries[key]
        if expired:
            self._expirations += len(expired)
            logger.debug("Expired %d cache entries", len(expired))

    def _evict_oldest(self) -> None:
        # min() keeps the first of equal timestamps, i.e. the earliest inserted.
        oldest_key = min(self._entries, key=lambda k: self._entries[k].timestamp, default=None)
        if oldest_key is not None:
            evicted = self._entries.pop(oldest_key)
            self._evictions += 1
            logger.debug("Evicted oldest cache entry for query %r", evicted.query)

    @staticmethod
    def _new_key(now: float) -> str:
        return f"query_{int(now)}_{uuid.uuid4().hex[:9]}"


def _mark_cached(result: Any) -> Any:
    """Deep-copy *result* with ``from_cache`` set and latency zeroed.

    Callers may mutate what they get back; the stored entry stays as inserted.
    """
    result = copy.deepcopy(result)
    if is_dataclass(result) and not isinstance(result, type):
        names = {f.name for f in fields(result)}
        updates = {
            name: value
            for name, value in (("from_cache", True), ("latency", 0), ("latency_ms", 0))
            if name in names
        }
        return replace(result, **updates)
    if isinstance(result, Mapping):
        return {**result, "from_cache": True, "latency": 0}
    return result
