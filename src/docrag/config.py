"""docrag configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (DOCRAG_*)
  3. Per-project docrag.yaml  (current working directory)
  4. Global ~/.docrag/config.yaml  (defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".docrag"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "docrag.yaml"

# Matches api_key, api-key, api_secret, *_token, token, *_secret, secret,
# password, passwd, credential(s). Does NOT match chunk_size, max_size, ttl.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["chunker", "cache", "embedding", "retrieval"])

# env var -> (section, key, type)
_ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "DOCRAG_CHUNK_SIZE": ("chunker", "chunk_size", int),
    "DOCRAG_CHUNK_OVERLAP": ("chunker", "overlap", int),
    "DOCRAG_CACHE_MAX_SIZE": ("cache", "max_size", int),
    "DOCRAG_CACHE_TTL": ("cache", "ttl", int),
    "DOCRAG_CACHE_SIMILARITY_THRESHOLD": ("cache", "similarity_threshold", float),
    "DOCRAG_EMBEDDING_MODEL": ("embedding", "model", str),
    "DOCRAG_EMBEDDING_DIMENSIONS": ("embedding", "dimensions", int),
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file or env var contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ChunkerCfg:
    """Chunking parameters (docrag.yaml: chunker:).

    Attributes:
        chunk_size: Target window length in estimated tokens (words for the
            oversized-section splitter).
        overlap: Words shared between consecutive sub-chunks of a split section.
        code_language: Fence language for method code examples.
    """

    chunk_size: int = 450
    overlap: int = 68
    code_language: str = "javascript"


@dataclass
class CacheCfg:
    """Semantic cache limits (docrag.yaml: cache:). ``ttl`` is in milliseconds."""

    max_size: int = 100
    ttl: int = 300_000
    similarity_threshold: float = 0.95


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (docrag.yaml: embedding:)."""

    model: str = "gemini/text-embedding-004"
    dimensions: int = 768
    batch_size: int = 10


@dataclass
class RetrievalCfg:
    """Vector search parameters (docrag.yaml: retrieval:)."""

    threshold: float = 0.7
    count: int = 10


@dataclass
class DocragConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    chunker: ChunkerCfg = field(default_factory=ChunkerCfg)
    cache: CacheCfg = field(default_factory=CacheCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def validate_config(cfg: DocragConfig) -> DocragConfig:
    """Raise ConfigError if any merged value is out of range. Returns *cfg*."""
    ch = cfg.chunker
    if ch.chunk_size < 1:
        raise ConfigError(f"chunker.chunk_size must be >= 1, got {ch.chunk_size}")
    if not 0 <= ch.overlap < ch.chunk_size:
        raise ConfigError(
            f"chunker.overlap must be in [0, chunk_size), got {ch.overlap} "
            f"(chunk_size={ch.chunk_size})"
        )
    if cfg.cache.max_size < 1:
        raise ConfigError(f"cache.max_size must be >= 1, got {cfg.cache.max_size}")
    if cfg.cache.ttl < 0:
        raise ConfigError(f"cache.ttl must be >= 0 ms, got {cfg.cache.ttl}")
    if not -1.0 <= cfg.cache.similarity_threshold <= 1.0:
        raise ConfigError(
            "cache.similarity_threshold must be in [-1.0, 1.0], "
            f"got {cfg.cache.similarity_threshold}"
        )
    if cfg.embedding.dimensions < 1:
        raise ConfigError(f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}")
    if cfg.embedding.batch_size < 1:
        raise ConfigError(f"embedding.batch_size must be >= 1, got {cfg.embedding.batch_size}")
    if cfg.retrieval.count < 1:
        raise ConfigError(f"retrieval.count must be >= 1, got {cfg.retrieval.count}")
    return cfg


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data[name] or {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Config section '{name}' must be a mapping, got {type(section).__name__}"
        )
    return section


def _read_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level")
    return data


def _cfg_from_dict(data: dict[str, Any]) -> DocragConfig:
    """Build a *DocragConfig* from a merged raw YAML dict."""
    cfg = DocragConfig()

    try:
        if "chunker" in data:
            c = _section(data, "chunker")
            cfg.chunker = ChunkerCfg(
                chunk_size=int(c.get("chunk_size", cfg.chunker.chunk_size)),
                overlap=int(c.get("overlap", cfg.chunker.overlap)),
                code_language=str(c.get("code_language", cfg.chunker.code_language)),
            )

        if "cache" in data:
            c = _section(data, "cache")
            cfg.cache = CacheCfg(
                max_size=int(c.get("max_size", cfg.cache.max_size)),
                ttl=int(c.get("ttl", cfg.cache.ttl)),
                similarity_threshold=float(
                    c.get("similarity_threshold", cfg.cache.similarity_threshold)
                ),
            )

        if "embedding" in data:
            e = _section(data, "embedding")
            cfg.embedding = EmbeddingCfg(
                model=str(e.get("model", cfg.embedding.model)),
                dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
                batch_size=int(e.get("batch_size", cfg.embedding.batch_size)),
            )

        if "retrieval" in data:
            r = _section(data, "retrieval")
            cfg.retrieval = RetrievalCfg(
                threshold=float(r.get("threshold", cfg.retrieval.threshold)),
                count=int(r.get("count", cfg.retrieval.count)),
            )
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: DocragConfig) -> DocragConfig:
    """Apply DOCRAG_* environment variable overrides."""
    for env_var, (section, key, cast) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if not raw:
            continue
        try:
            value = cast(raw)
        except ValueError as exc:
            raise ConfigError(f"{env_var}={raw!r} is not a valid {cast.__name__}") from exc
        setattr(getattr(cfg, section), key, value)
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> DocragConfig:
    """Load and return a merged, validated *DocragConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *docrag.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or any
            value is malformed or out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    cfg = _apply_env_overrides(cfg)
    return validate_config(cfg)


def ensure_global_config(global_config_path: Path | None = None) -> Path:
    """Create ``~/.docrag/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# docrag global configuration — defaults only.\n"
            "# NEVER store API keys here — use environment variables:\n"
            "#   export GEMINI_API_KEY=...\n"
            "\n"
            "embedding:\n"
            "  model: gemini/text-embedding-004\n"
            "  dimensions: 768\n"
            "\n"
            "cache:\n"
            "  max_size: 100\n"
            "  ttl: 300000\n"
            "  similarity_threshold: 0.95\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
