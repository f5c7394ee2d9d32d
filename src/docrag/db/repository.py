"""Repository pattern for chunk + embedding storage.

Single interface for: chunk upsert by id, per-type counts, vec embeddings and
similarity search. Vec tables are model-managed (ensure_vec_table); the
repository handles read + write.
"""

from __future__ import annotations

import json
import sqlite3

from docrag.db.models import Chunk
from docrag.db.vectors import vec_table_exists


class Repository:
    """Data access layer for chunks and their embeddings.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                initialised (see docrag.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def upsert_chunk(self, chunk: Chunk) -> int:
        """Insert *chunk*, or update it in place if its id already exists.

        Returns:
            The chunk's rowid (stable across updates; used as the vec table key).
        """
        self._conn.execute(
            """
            INSERT INTO chunks (id, source_url, chunk_type, content, metadata)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                source_url = excluded.source_url,
                chunk_type = excluded.chunk_type,
                content    = excluded.content,
                metadata   = excluded.metadata,
                updated_at = datetime('now')
            """,
            (
                chunk.id,
                chunk.source_url,
                chunk.chunk_type,
                chunk.content,
                chunk.metadata_json,
            ),
        )
        self._conn.commit()
        return self._rowid_for(chunk.id)

    def get_chunk(self, chunk_id: str) -> Chunk | None:
        """Return a chunk by id, or None if not found."""
        row = self._conn.execute(
            "SELECT id, content, metadata FROM chunks WHERE id = ?", (chunk_id,)
        ).fetchone()
        return _row_to_chunk(row) if row else None

    def get_chunk_by_rowid(self, rowid: int) -> Chunk | None:
        """Return a chunk by its SQLite rowid, or None if not found."""
        row = self._conn.execute(
            "SELECT id, content, metadata FROM chunks WHERE rowid = ?", (rowid,)
        ).fetchone()
        return _row_to_chunk(row) if row else None

    def count_chunks(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]

    def count_chunks_by_type(self) -> dict[str, int]:
        """Return ``{chunk_type: count}`` across all stored chunks."""
        rows = self._conn.execute(
            "SELECT chunk_type, COUNT(*) AS n FROM chunks GROUP BY chunk_type ORDER BY chunk_type"
        ).fetchall()
        return {r["chunk_type"]: r["n"] for r in rows}

    def count_sources(self) -> int:
        return self._conn.execute(
            "SELECT COUNT(DISTINCT source_url) FROM chunks"
        ).fetchone()[0]

    def last_updated(self) -> str | None:
        row = self._conn.execute("SELECT MAX(updated_at) FROM chunks").fetchone()
        return row[0] if row else None

    def delete_chunks_by_url(self, source_url: str) -> int:
        """Delete every chunk (and its embeddings) ingested from *source_url*.

        Returns:
            Number of chunk rows deleted.
        """
        rowids = [
            r[0]
            for r in self._conn.execute(
                "SELECT rowid FROM chunks WHERE source_url = ?", (source_url,)
            ).fetchall()
        ]
        if not rowids:
            return 0
        placeholders = ",".join("?" * len(rowids))
        for table in self.list_vec_tables():
            self._conn.execute(
                f"DELETE FROM [{table}] WHERE rowid IN ({placeholders})",  # noqa: S608
                rowids,
            )
        cur = self._conn.execute("DELETE FROM chunks WHERE source_url = ?", (source_url,))
        self._conn.commit()
        return cur.rowcount

    # ------------------------------------------------------------------
    # Vec embeddings
    # ------------------------------------------------------------------

    def upsert_embedding(self, table: str, chunk_id: str, embedding: list[float]) -> None:
        """Store *embedding* for an already-upserted chunk, replacing any previous one.

        vec0 tables have no ON CONFLICT support, so the old row is deleted first.
        """
        rowid = self._rowid_for(chunk_id)
        self._conn.execute(f"DELETE FROM {table} WHERE rowid = ?", (rowid,))
        self._conn.execute(
            f"INSERT INTO {table}(rowid, embedding) VALUES (?, ?)",
            (rowid, json.dumps(embedding)),
        )
        self._conn.commit()

    def count_embeddings(self, table: str) -> int:
        return self._conn.execute(f"SELECT COUNT(*) FROM [{table}]").fetchone()[0]  # noqa: S608

    def search_vec(
        self,
        table: str,
        embedding: list[float],
        threshold: float = 0.0,
        count: int = 10,
    ) -> list[tuple[Chunk, float]]:
        """Nearest-neighbour search by cosine similarity.

        Returns:
            Up to *count* ``(chunk, similarity)`` pairs with
            ``similarity >= threshold``, most similar first.
        """
        vec_rows = self._conn.execute(
            f"SELECT rowid, distance FROM {table} WHERE embedding MATCH ? ORDER BY distance LIMIT ?",
            (json.dumps(embedding), count),
        ).fetchall()

        results: list[tuple[Chunk, float]] = []
        for vec_row in vec_rows:
            similarity = 1.0 - vec_row["distance"]
            if similarity < threshold:
                continue
            chunk = self.get_chunk_by_rowid(vec_row["rowid"])
            if chunk is not None:
                results.append((chunk, similarity))
        return results

    def has_vec_table(self, table: str) -> bool:
        return vec_table_exists(self._conn, table)

    def list_vec_tables(self) -> list[str]:
        """Return vec0 table names (sqlite-vec shadow tables are excluded)."""
        return [
            r[0]
            for r in self._conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name LIKE 'vec_chunks_%' "
                "AND sql LIKE 'CREATE VIRTUAL TABLE%' ORDER BY name"
            ).fetchall()
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _rowid_for(self, chunk_id: str) -> int:
        row = self._conn.execute("SELECT rowid FROM chunks WHERE id = ?", (chunk_id,)).fetchone()
        if row is None:
            raise KeyError(f"Chunk '{chunk_id}' is not stored")
        return row[0]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["id"],
        content=row["content"],
        metadata=json.loads(row["metadata"]),
    )
