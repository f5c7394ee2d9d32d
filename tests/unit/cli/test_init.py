"""Tests for docrag init and --version."""

from __future__ import annotations

from pathlib import Path

import yaml
from typer.testing import CliRunner

from docrag.cli.main import app
from docrag.db.connection import Database
from docrag.db.vectors import vec_table_exists

runner = CliRunner()


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("docrag ")


def test_init_creates_db_and_vec_table(project_dir: Path) -> None:
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0, result.output
    db_path = project_dir / ".docrag.db"
    assert db_path.exists()
    with Database(db_path) as conn:
        assert vec_table_exists(conn, "vec_chunks_gemini_text_embedding_004")


def test_init_creates_global_config(project_dir: Path) -> None:
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0, result.output
    global_cfg = project_dir / "home" / "config.yaml"
    assert global_cfg.exists()
    assert "embedding" in yaml.safe_load(global_cfg.read_text(encoding="utf-8"))


def test_init_global_config_override(project_dir: Path) -> None:
    target = project_dir / "elsewhere" / "config.yaml"
    result = runner.invoke(app, ["init", "--global-config", str(target)])
    assert result.exit_code == 0, result.output
    assert target.exists()


def test_init_custom_db_path(project_dir: Path) -> None:
    result = runner.invoke(app, ["init", "--db", "store.db"])
    assert result.exit_code == 0, result.output
    assert (project_dir / "store.db").exists()


def test_init_twice_is_safe(project_dir: Path) -> None:
    runner.invoke(app, ["init"])
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0, result.output
    assert "already exists" in result.output


def test_init_invalid_config_exits_1(project_dir: Path) -> None:
    (project_dir / "docrag.yaml").write_text(
        yaml.dump({"chunker": {"chunk_size": 10, "overlap": 20}}), encoding="utf-8"
    )
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_init_non_mapping_section_exits_1(project_dir: Path) -> None:
    (project_dir / "docrag.yaml").write_text("cache: 5\n", encoding="utf-8")
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 1
    assert "must be a mapping" in result.output
