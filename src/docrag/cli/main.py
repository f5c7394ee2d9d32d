"""docrag CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from docrag.cli.chunk import chunk_cmd
from docrag.cli.ingest import ingest_cmd
from docrag.cli.init import init_cmd
from docrag.cli.search import search_cmd
from docrag.cli.status import status_cmd


def _version_callback(value: bool) -> None:
    if value:
        try:
            ver = importlib.metadata.version("docrag")
        except importlib.metadata.PackageNotFoundError:
            ver = "dev"
        typer.echo(f"docrag {ver}")
        raise typer.Exit()


app = typer.Typer(
    name="docrag",
    help=(
        "docrag — documentation RAG front end.\n\n"
        "  docrag ingest   Chunk crawled pages, embed them and upsert into the store.\n"
        "  docrag search   Semantic search through the similarity cache."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """docrag — documentation RAG front end."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )
    # LiteLLM and HTTP client chatter stays at WARNING unless debugging.
    for noisy in ("LiteLLM", "httpx"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if verbose else logging.WARNING)


app.command("init")(init_cmd)
app.command("chunk")(chunk_cmd)
app.command("ingest")(ingest_cmd)
app.command("search")(search_cmd)
app.command("status")(status_cmd)
