"""docrag chunk — chunk a pages export without embedding (inspection / export)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from docrag.cli.config_loader import load_cli_config
from docrag.cli.errors import err_chunk_collision, err_pages_file
from docrag.db.models import Chunk
from docrag.errors import ChunkIdCollisionError, PageError
from docrag.ingest.loader import load_pages
from docrag.ingest.page import ChunkingStats, PageChunker

console = Console()


def chunk_cmd(
    pages_file: Annotated[
        Path,
        typer.Argument(help="JSON export of crawled pages."),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write chunks as JSON to this file."),
    ] = None,
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
    """Chunk pages and print per-type statistics."""
    cfg = load_cli_config(console, chunk_size=chunk_size, overlap=overlap)
    chunks, stats = run_chunker(pages_file, cfg.chunker.chunk_size, cfg.chunker.overlap,
                                cfg.chunker.code_language, strict=strict)
    show_stats(stats)

    if output is not None:
        output.write_text(
            json.dumps([c.to_dict() for c in chunks], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        console.print(f"  [green]✓[/] {len(chunks)} chunks written to {output}")


def run_chunker(
    pages_file: Path,
    chunk_size: int,
    overlap: int,
    code_language: str,
    *,
    strict: bool,
) -> tuple[list[Chunk], ChunkingStats]:
    """Load and chunk *pages_file*; print an actionable error and exit 1 on failure."""
    try:
        pages = load_pages(pages_file)
    except (OSError, PageError) as exc:
        console.print(err_pages_file(str(pages_file), str(exc)))
        raise typer.Exit(1) from exc

    chunker = PageChunker(chunk_size=chunk_size, overlap=overlap, code_language=code_language)
    try:
        return chunker.process_pages(pages, strict=strict)
    except PageError as exc:
        console.print(err_pages_file(str(pages_file), str(exc)))
        raise typer.Exit(1) from exc
    except ChunkIdCollisionError as exc:
        console.print(err_chunk_collision(str(exc)))
        raise typer.Exit(1) from exc


def show_stats(stats: ChunkingStats) -> None:
    table = Table(title="Chunking statistics", show_header=True)
    table.add_column("Chunk type")
    table.add_column("Count", justify="right")
    for chunk_type, count in sorted(stats.chunk_types.items()):
        table.add_row(chunk_type, str(count))
    table.add_row("[bold]total[/]", f"[bold]{stats.total_chunks}[/]")
    console.print(table)
    console.print(
        f"  Pages: {stats.total_pages}  |  "
        f"Average chunks per page: {stats.average_chunks_per_page:.1f}"
    )
    for index, reason in stats.failed_pages:
        console.print(f"  [yellow]✗ page {index} skipped:[/] {reason}")
