"""Tests for docrag ingest."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from docrag.cli.main import app
from docrag.db.connection import Database
from docrag.db.repository import Repository

runner = CliRunner()


def _fake_embedding(**kwargs):
    response = MagicMock()
    response.data = [{"embedding": [1.0, 0.0, 0.0]} for _ in kwargs["input"]]
    return response


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")


def test_dry_run_writes_nothing(pages_file: Path, project_dir: Path) -> None:
    with patch("docrag.rag.embeddings.litellm.embedding") as mock:
        result = runner.invoke(app, ["ingest", str(pages_file), "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "Dry run" in result.output
    assert not (project_dir / ".docrag.db").exists()
    mock.assert_not_called()


def test_ingest_embeds_and_stores(pages_file: Path, project_dir: Path, api_key) -> None:
    with patch("docrag.rag.embeddings.litellm.embedding", side_effect=_fake_embedding):
        result = runner.invoke(app, ["ingest", str(pages_file), "--yes"])
    assert result.exit_code == 0, result.output
    assert "4 chunks embedded" in result.output

    with Database(project_dir / ".docrag.db") as conn:
        repo = Repository(conn)
        assert repo.count_chunks() == 4
        assert repo.count_embeddings("vec_chunks_gemini_text_embedding_004") == 4


def test_reingest_updates_in_place(pages_file: Path, project_dir: Path, api_key) -> None:
    with patch("docrag.rag.embeddings.litellm.embedding", side_effect=_fake_embedding):
        runner.invoke(app, ["ingest", str(pages_file), "--yes"])
        result = runner.invoke(app, ["ingest", str(pages_file), "--yes"])
    assert result.exit_code == 0, result.output

    with Database(project_dir / ".docrag.db") as conn:
        repo = Repository(conn)
        assert repo.count_chunks() == 4
        assert repo.count_embeddings("vec_chunks_gemini_text_embedding_004") == 4


def test_ingest_missing_api_key_exits_1(pages_file: Path, monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    result = runner.invoke(app, ["ingest", str(pages_file), "--yes"])
    assert result.exit_code == 1
    assert "GEMINI_API_KEY" in result.output


def test_ingest_declined_confirmation(pages_file: Path, project_dir: Path, api_key) -> None:
    with patch("docrag.rag.embeddings.litellm.embedding") as mock:
        result = runner.invoke(app, ["ingest", str(pages_file)], input="n\n")
    assert result.exit_code == 0
    assert "Skipped" in result.output
    mock.assert_not_called()


def test_ingest_wrong_dimensions_exits_1(pages_file: Path, api_key) -> None:
    def _two_dims(**kwargs):
        response = MagicMock()
        response.data = [{"embedding": [1.0, 0.0]} for _ in kwargs["input"]]
        return response

    with patch("docrag.rag.embeddings.litellm.embedding", side_effect=_two_dims):
        result = runner.invoke(app, ["ingest", str(pages_file), "--yes"])
    assert result.exit_code == 1
    assert "dimensions" in result.output


def test_ingest_empty_pages_exits_0(project_dir: Path) -> None:
    path = project_dir / "empty.json"
    path.write_text("[]", encoding="utf-8")
    result = runner.invoke(app, ["ingest", str(path), "--yes"])
    assert result.exit_code == 0
    assert "No chunks produced" in result.output
