"""Config loading shared by CLI commands: errors become a rich message + exit 1."""

from __future__ import annotations

import typer
from rich.console import Console

from docrag.cli.errors import err_config
from docrag.config import ConfigError, DocragConfig, load_config, validate_config


def load_cli_config(
    console: Console,
    *,
    chunk_size: int | None = None,
    overlap: int | None = None,
) -> DocragConfig:
    """Load config and apply CLI flag overrides (highest priority)."""
    try:
        cfg = load_config()
        if chunk_size is not None:
            cfg.chunker.chunk_size = chunk_size
        if overlap is not None:
            cfg.chunker.overlap = overlap
        return validate_config(cfg)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc
