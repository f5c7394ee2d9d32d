"""docrag ingest — chunk a pages export, embed every chunk, upsert into the store."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from docrag.cli.chunk import run_chunker, show_stats
from docrag.cli.config_loader import load_cli_config
from docrag.cli.errors import err_dimension_mismatch, err_no_api_key
from docrag.db.connection import Database
from docrag.db.repository import Repository
from docrag.db.vectors import ensure_vec_table, model_to_slug
from docrag.errors import EmbeddingDimensionError
from docrag.ingest.base import BaseChunker
from docrag.ingest.embedding_writer import EmbeddingWriter
from docrag.rag.embeddings import EmbeddingProvider, validate_api_key

console = Console()

_DEFAULT_DB = Path(".docrag.db")


def ingest_cmd(
    pages_file: Annotated[
        Path,
        typer.Argument(help="JSON export of crawled pages."),
    ],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the database (created if missing)."),
    ] = _DEFAULT_DB,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Chunk and report without embedding or writing."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt."),
    ] = False,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", help="Target chunk size in tokens."),
    ] = None,
    overlap: Annotated[
        int | None,
        typer.Option("--overlap", help="Words shared between split windows."),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Abort on the first malformed page."),
    ] = False,
) -> None:
    """Ingest crawled pages into the docrag vector store."""
    cfg = load_cli_config(console, chunk_size=chunk_size, overlap=overlap)

    console.print(f"\n[bold]→ {pages_file}[/]")
    chunks, stats = run_chunker(pages_file, cfg.chunker.chunk_size, cfg.chunker.overlap,
                                cfg.chunker.code_language, strict=strict)
    show_stats(stats)

    if not chunks:
        console.print("  [yellow]✗ No chunks produced[/]")
        raise typer.Exit(0)

    if dry_run:
        console.print("  [dim]Dry run — nothing written to DB[/]")
        return

    total_tokens = sum(BaseChunker.estimate_tokens(c.content) for c in chunks)
    console.print(f"  ~{total_tokens:,} tokens to embed with [bold]{cfg.embedding.model}[/]")
    if not yes and not typer.confirm("  Proceed with embedding?", default=True):
        console.print("  [dim]Skipped.[/]")
        return

    try:
        validate_api_key(cfg.embedding.model)
    except EnvironmentError as exc:
        console.print(err_no_api_key(cfg.embedding.model.split("/")[0]))
        raise typer.Exit(1) from exc

    conn = Database(db, migrate=True).connect()
    try:
        repo = Repository(conn)
        vec_table = ensure_vec_table(
            conn, model_to_slug(cfg.embedding.model), cfg.embedding.dimensions
        )
        writer = EmbeddingWriter(repo, EmbeddingProvider(cfg.embedding))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            transient=True,
            console=console,
        ) as prog:
            task = prog.add_task("Embedding…", total=len(chunks))

            def _on_chunk(idx: int) -> None:
                prog.update(task, completed=idx + 1)

            try:
                writer.write(chunks, vec_table, on_progress=_on_chunk)
            except EmbeddingDimensionError as exc:
                console.print(err_dimension_mismatch(str(exc)))
                raise typer.Exit(1) from exc
    finally:
        conn.close()

    console.print(f"  [green]✓[/] {len(chunks)} chunks embedded and stored in {db}")
