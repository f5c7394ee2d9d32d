"""docrag rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from docrag.cli.errors import err_no_db
    console.print(err_no_db(str(db)))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*."""
    env_map = {
        "gemini": "GEMINI_API_KEY",
        "openai": "OPENAI_API_KEY",
        "cohere": "COHERE_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
        "voyage": "VOYAGE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_no_db(db_path: str = ".docrag.db") -> str:
    """No database found."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  docrag init"
    )


def err_no_vectors(model: str) -> str:
    """Nothing has been embedded with the configured model."""
    return (
        f"[red]Error:[/] No embeddings found for model '{model}'.\n"
        "  Run:  docrag ingest PAGES.json"
    )


def err_pages_file(path: str, reason: str) -> str:
    """Pages export missing or unreadable."""
    return (
        f"[red]Error:[/] Cannot read pages from '{path}': {reason}\n"
        "  Provide a JSON file containing a list of pages or a 'pages' list."
    )


def err_config(reason: str) -> str:
    """Invalid configuration value."""
    return (
        f"[red]Error:[/] Invalid configuration: {reason}\n"
        "  Check docrag.yaml, ~/.docrag/config.yaml and DOCRAG_* environment variables."
    )


def err_chunk_collision(reason: str) -> str:
    """Two different chunks produced the same id."""
    return (
        f"[red]Error:[/] {reason}\n"
        "  Nothing was written. Report the two pages above; ids must be unique per corpus."
    )


def err_dimension_mismatch(reason: str) -> str:
    """Embedding dimensionality does not match the configuration."""
    return (
        f"[red]Error:[/] {reason}\n"
        "  Set embedding.dimensions to the model's output size, or re-ingest with the new model."
    )
