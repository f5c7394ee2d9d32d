"""docrag init — create the chunk database and the global config file."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from docrag.cli.config_loader import load_cli_config
from docrag.config import ensure_global_config
from docrag.db.connection import Database
from docrag.db.vectors import ensure_vec_table, model_to_slug

console = Console()

_DEFAULT_DB = Path(".docrag.db")


def init_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the database file to create."),
    ] = _DEFAULT_DB,
    global_config: Annotated[
        Path | None,
        typer.Option("--global-config", hidden=True, help="Override ~/.docrag/config.yaml (for testing)."),
    ] = None,
) -> None:
    """Create the chunk database with schema and vector table."""
    cfg = load_cli_config(console)
    existed = db.exists()

    conn = Database(db, migrate=True).connect()
    try:
        table = ensure_vec_table(
            conn, model_to_slug(cfg.embedding.model), cfg.embedding.dimensions
        )
    finally:
        conn.close()

    if existed:
        console.print(f"  [yellow]↷[/] {db} already exists — schema verified")
    else:
        console.print(f"  [green]✓[/] {db}")
    console.print(f"  [green]✓[/] vector table {table} ({cfg.embedding.dimensions} dims)")

    config_path = ensure_global_config(global_config)
    console.print(f"  [green]✓[/] {config_path}")
