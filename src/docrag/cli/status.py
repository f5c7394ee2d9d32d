"""docrag status — chunk store overview and effective configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel

from docrag.cli.config_loader import load_cli_config
from docrag.config import DocragConfig
from docrag.db.connection import Database
from docrag.db.repository import Repository

console = Console()

_DEFAULT_DB = Path(".docrag.db")


def status_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the database."),
    ] = _DEFAULT_DB,
) -> None:
    """Show stored chunk counts and the effective configuration."""
    cfg = load_cli_config(console)

    if db.exists():
        conn = Database(db, migrate=True).connect()
        try:
            _show_store_panel(db, Repository(conn))
        finally:
            conn.close()
    else:
        console.print(
            Panel(
                "[yellow]No database found.[/]\n"
                "  Run:  docrag init",
                title="[bold]Chunk store[/]",
                expand=False,
            )
        )

    _show_config_panel(cfg)


def _show_store_panel(db: Path, repo: Repository) -> None:
    size_mb = db.stat().st_size / (1024 * 1024)
    lines = [
        f"Database: {db} ({size_mb:.1f} MB)",
        f"Pages: [bold]{repo.count_sources()}[/]  |  Chunks: [bold]{repo.count_chunks():,}[/]",
    ]
    for chunk_type, n in repo.count_chunks_by_type().items():
        lines.append(f"  {chunk_type}: {n:,}")
    for table in repo.list_vec_tables():
        lines.append(f"[dim]{table}[/] ({repo.count_embeddings(table):,} vectors)")
    last = repo.last_updated()
    if last:
        lines.append(f"Last update: [dim]{last[:16]}[/]")
    else:
        lines.append("[dim]No chunks ingested yet.[/]")
    console.print(Panel("\n".join(lines), title="[bold]Chunk store[/]", expand=False))


def _show_config_panel(cfg: DocragConfig) -> None:
    lines = [
        f"Chunker:   size {cfg.chunker.chunk_size} tokens, overlap {cfg.chunker.overlap}",
        f"Embedding: {cfg.embedding.model} ({cfg.embedding.dimensions} dims)",
        f"Retrieval: threshold {cfg.retrieval.threshold}, count {cfg.retrieval.count}",
        f"Cache:     {cfg.cache.max_size} entries, TTL {cfg.cache.ttl} ms, "
        f"similarity >= {cfg.cache.similarity_threshold}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Configuration[/]", expand=False))
