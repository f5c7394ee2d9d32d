"""docrag search — query the store through the semantic cache."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from docrag.cache import get_semantic_cache
from docrag.cache.semantic import SemanticCache
from docrag.cli.config_loader import load_cli_config
from docrag.cli.errors import err_dimension_mismatch, err_no_api_key, err_no_db, err_no_vectors
from docrag.db.connection import Database
from docrag.db.repository import Repository
from docrag.db.vectors import model_to_slug, vec_table_name
from docrag.errors import DimensionMismatchError, EmbeddingDimensionError
from docrag.rag.embeddings import EmbeddingProvider, validate_api_key
from docrag.rag.search import CachedSearcher, SearchResult, repository_search

console = Console()

_DEFAULT_DB = Path(".docrag.db")
_PREVIEW_CHARS = 160


def search_cmd(
    queries: Annotated[
        list[str],
        typer.Argument(help="One or more queries, answered in order through the cache."),
    ],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the database."),
    ] = _DEFAULT_DB,
    count: Annotated[
        int | None,
        typer.Option("--count", "-k", min=1, help="Maximum number of chunks per query."),
    ] = None,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", help="Minimum cosine similarity of returned chunks."),
    ] = None,
    no_cache: Annotated[
        bool,
        typer.Option("--no-cache", help="Bypass the semantic cache."),
    ] = False,
    show_cache_stats: Annotated[
        bool,
        typer.Option("--cache-stats", help="Print semantic cache statistics at the end."),
    ] = False,
) -> None:
    """Search ingested documentation by semantic similarity."""
    cfg = load_cli_config(console)

    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    try:
        validate_api_key(cfg.embedding.model)
    except EnvironmentError as exc:
        console.print(err_no_api_key(cfg.embedding.model.split("/")[0]))
        raise typer.Exit(1) from exc

    conn = Database(db, migrate=True).connect()
    try:
        repo = Repository(conn)
        try:
            vector_search = repository_search(
                repo, vec_table_name(model_to_slug(cfg.embedding.model))
            )
        except RuntimeError as exc:
            console.print(err_no_vectors(cfg.embedding.model))
            raise typer.Exit(1) from exc

        cache = None if no_cache else get_semantic_cache(cfg.cache)
        searcher = CachedSearcher(
            EmbeddingProvider(cfg.embedding), vector_search, cache=cache, config=cfg.retrieval
        )
        for query in queries:
            try:
                result = searcher.search(query, threshold=threshold, count=count)
            except (DimensionMismatchError, EmbeddingDimensionError) as exc:
                console.print(err_dimension_mismatch(str(exc)))
                raise typer.Exit(1) from exc
            _show_result(result)
    finally:
        conn.close()

    if show_cache_stats and cache is not None:
        _show_cache_stats(cache)


def _show_result(result: SearchResult) -> None:
    source = "[cyan]cache[/]" if result.from_cache else f"{result.latency_ms:.1f} ms"
    table = Table(show_header=True, box=None, padding=(0, 1))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Sim.", justify="right")
    table.add_column("Type", style="dim")
    table.add_column("Content")
    for rank, scored in enumerate(result.chunks, start=1):
        preview = " ".join(scored.chunk.content.split())[:_PREVIEW_CHARS]
        table.add_row(
            str(rank), f"{scored.similarity:.3f}", scored.chunk.chunk_type, preview
        )
    if not result.chunks:
        table.add_row("", "", "", "[dim]No matches above threshold.[/]")
    console.print(
        Panel(table, title=f"[bold]{result.query}[/] [dim]({source})[/]", expand=False)
    )


def _show_cache_stats(cache: SemanticCache) -> None:
    stats = cache.get_stats()
    lines = [
        f"Entries: [bold]{stats.size}/{stats.max_size}[/]  |  "
        f"TTL: {stats.ttl / 1000:.0f}s  |  Threshold: {stats.similarity_threshold}",
        f"Lookups: {stats.lookups}  |  Hits: {stats.total_hits}  |  "
        f"Hit rate: {stats.hit_rate:.0%}",
    ]
    for entry in stats.entries:
        lines.append(f"  [dim]{entry.hits:>3} hits[/]  {entry.query}")
    console.print(Panel("\n".join(lines), title="[bold]Semantic cache[/]", expand=False))
