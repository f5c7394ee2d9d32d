"""CLI test fixtures: isolated working directory and global config."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

import docrag.config as config_module

PAGES = [
    {
        "title": "Sheet",
        "url": "https://developers.google.com/apps-script/reference/spreadsheet/sheet",
        "component_type": "Class",
        "properties": [{"name": "NAME", "type": "String", "description": "Sheet name"}],
        "methods": [
            {
                "signature": "getRange(row, column)",
                "description": "Returns the range at the given coordinates.",
                "return_type": "Range",
            }
        ],
        "markdown": "# Sheet\nAccess and modify spreadsheet sheets.",
    },
    {
        "title": "Array",
        "url": "https://developers.google.com/apps-script/reference/base/array",
        "properties": [{"name": "length", "type": "number", "description": "Array length"}],
    },
]


@pytest.fixture(autouse=True)
def project_dir(tmp_path: Path, monkeypatch) -> Path:
    """Run every CLI test from an empty project dir with a private global config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "_GLOBAL_CONFIG_PATH", tmp_path / "home" / "config.yaml")
    (tmp_path / "docrag.yaml").write_text(
        yaml.dump({"embedding": {"model": "gemini/text-embedding-004", "dimensions": 3}}),
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def pages_file(project_dir: Path) -> Path:
    path = project_dir / "pages.json"
    path.write_text(json.dumps(PAGES), encoding="utf-8")
    return path
