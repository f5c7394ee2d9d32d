"""Shared pytest fixtures."""

from __future__ import annotations

import os

# litellm fetches its model cost map over the network at import; use the bundled copy in tests.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import pytest

from docrag.cache import reset_semantic_cache
from docrag.db.connection import Database


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    conn = Database(tmp_path / ".docrag.db", migrate=True).connect()
    yield conn
    conn.close()


@pytest.fixture(autouse=True)
def _fresh_semantic_cache():
    """Every test starts without a process-wide cache instance."""
    reset_semantic_cache()
    yield
    reset_semantic_cache()


@pytest.fixture(autouse=True)
def _no_docrag_env(monkeypatch):
    """DOCRAG_* variables from the developer's shell must not leak into tests."""
    for var in (
        "DOCRAG_CHUNK_SIZE",
        "DOCRAG_CHUNK_OVERLAP",
        "DOCRAG_CACHE_MAX_SIZE",
        "DOCRAG_CACHE_TTL",
        "DOCRAG_CACHE_SIMILARITY_THRESHOLD",
        "DOCRAG_EMBEDDING_MODEL",
        "DOCRAG_EMBEDDING_DIMENSIONS",
    ):
        monkeypatch.delenv(var, raising=False)
