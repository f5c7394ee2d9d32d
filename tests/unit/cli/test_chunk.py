"""Tests for docrag chunk."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from docrag.cli.main import app

runner = CliRunner()


def test_chunk_prints_stats(pages_file: Path) -> None:
    result = runner.invoke(app, ["chunk", str(pages_file)])
    assert result.exit_code == 0, result.output
    assert "Chunking statistics" in result.output
    assert "properties" in result.output
    assert "Pages: 2" in result.output


def test_chunk_writes_output(pages_file: Path, project_dir: Path) -> None:
    out = project_dir / "chunks.json"
    result = runner.invoke(app, ["chunk", str(pages_file), "-o", str(out)])
    assert result.exit_code == 0, result.output
    chunks = json.loads(out.read_text(encoding="utf-8"))
    assert [c["metadata"]["chunk_type"] for c in chunks] == [
        "properties",
        "method",
        "documentation",
        "properties",
    ]
    assert all(len(c["id"]) == 16 for c in chunks)


def test_chunk_missing_file_exits_1(project_dir: Path) -> None:
    result = runner.invoke(app, ["chunk", str(project_dir / "missing.json")])
    assert result.exit_code == 1
    assert "Cannot read pages" in result.output


def test_chunk_invalid_json_exits_1(project_dir: Path) -> None:
    bad = project_dir / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    result = runner.invoke(app, ["chunk", str(bad)])
    assert result.exit_code == 1


def test_chunk_skips_malformed_page(project_dir: Path) -> None:
    path = project_dir / "pages.json"
    path.write_text(
        json.dumps([{"url": "https://example.com/no-title"}, {"title": "Ok", "url": "https://example.com/ok", "markdown": "# Ok\nfine"}]),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["chunk", str(path)])
    assert result.exit_code == 0, result.output
    assert "page 0 skipped" in result.output


def test_chunk_strict_fails_on_malformed_page(project_dir: Path) -> None:
    path = project_dir / "pages.json"
    path.write_text(json.dumps([{"url": "https://example.com/no-title"}]), encoding="utf-8")
    result = runner.invoke(app, ["chunk", str(path), "--strict"])
    assert result.exit_code == 1


def test_chunk_invalid_overlap_flag_exits_1(pages_file: Path) -> None:
    result = runner.invoke(app, ["chunk", str(pages_file), "--chunk-size", "10", "--overlap", "10"])
    assert result.exit_code == 1
    assert "overlap" in result.output
