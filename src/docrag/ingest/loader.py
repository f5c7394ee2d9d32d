"""Load crawled page records from a JSON export."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from docrag.errors import PageError


def load_pages(path: Path | str) -> list[dict[str, Any]]:
    """Read page records from *path*.

    Accepts either a top-level list of pages or an object with a ``pages``
    list. Records are returned raw; ``PageChunker`` validates each one so a
    single bad record does not reject the whole file.

    Raises:
        FileNotFoundError: If *path* does not exist.
        PageError: If the file is not valid JSON or has no page list.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise PageError(f"'{path}' is not valid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("pages")
    if not isinstance(data, list):
        raise PageError(f"'{path}' must contain a list of pages or a 'pages' list")
    return data
