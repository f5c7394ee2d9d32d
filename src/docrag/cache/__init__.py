"""Semantic query cache and its process-wide instance."""

from __future__ import annotations

from docrag.cache.semantic import CacheEntry, CacheEntryStats, CacheStats, SemanticCache
from docrag.cache.similarity import cosine_similarity
from docrag.config import CacheCfg

_instance: SemanticCache | None = None


def get_semantic_cache(config: CacheCfg | None = None) -> SemanticCache:
    """Return the process-wide cache, creating it on first use.

    *config* only applies to the call that creates the instance; pass the
    instance explicitly to collaborators rather than calling this everywhere.
    """
    global _instance
    if _instance is None:
        cfg = config or CacheCfg()
        _instance = SemanticCache(
            max_size=cfg.max_size,
            ttl=cfg.ttl,
            similarity_threshold=cfg.similarity_threshold,
        )
    return _instance


def reset_semantic_cache() -> None:
    """Discard the process-wide cache so the next call creates a fresh one."""
    global _instance
    _instance = None


__all__ = [
    "CacheEntry",
    "CacheEntryStats",
    "CacheStats",
    "SemanticCache",
    "cosine_similarity",
    "get_semantic_cache",
    "reset_semantic_cache",
]
