"""Configuration: default paths, constants, and config loading (global + project overrides)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# Directory name inside a target project for repograph settings
REPOGRAPH_DIR = ".repograph"
CONFIG_FILENAME = "config.json"


# Global config location
def _global_config_dir() -> Path:
    return Path.home() / ".repograph"


def global_config_path() -> Path:
    """Path to global config file (~/.repograph/config.json)."""
    return _global_config_dir() / CONFIG_FILENAME


def default_config() -> dict[str, Any]:
    """Built-in defaults; every key the analyzer reads is present here."""
    return {
        "analysis": {
            "max_workers": 1,
            "strict_parse": False,
            # Extra extension -> language mappings, e.g. {".es6": "javascript"}
            "extensions": {},
        },
        "logging": {
            "level": "INFO",
            "file": None,
        },
        "ignore": {
            "use_gitignore": True,
            "builtin_patterns": [".git/", "node_modules/", ".repograph/"],
            "additional_patterns": [],
        },
    }


def _load_json(path: Path) -> dict[str, Any] | None:
    """Load JSON from path; return None if file missing or invalid."""
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return None
    return data if isinstance(data, dict) else None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into base recursively. Mutates base; returns base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def load_global_config() -> dict[str, Any]:
    """Load global config from ~/.repograph/config.json. Returns defaults if missing."""
    data = _load_json(global_config_path())
    if data is None:
        return default_config()
    return _deep_merge(default_config(), data)


def project_config_path(project_root: Path) -> Path:
    """Path to project-local config (<project>/.repograph/config.json)."""
    return project_root / REPOGRAPH_DIR / CONFIG_FILENAME


def load_config(project_root: Path | None = None) -> dict[str, Any]:
    """
    Load merged configuration: defaults + global (~/.repograph/config.json) + project overrides.

    If project_root is None, only global config (and defaults) are used.
    """
    merged = load_global_config()
    if project_root is not None:
        project_data = _load_json(project_config_path(project_root.resolve()))
        if project_data is not None:
            _deep_merge(merged, project_data)
    return merged


def get_project_root(path: Path) -> Path:
    """Resolve path to absolute. If it is a file, use its parent."""
    resolved = path.resolve()
    if resolved.is_file():
        return resolved.parent
    return resolved


def resolve_path(path: Path) -> Path:
    """Resolve path to absolute, normalized."""
    return path.resolve()


def analysis_settings(config: dict[str, Any]) -> tuple[int, bool, dict[str, str]]:
    """(max_workers, strict_parse, extensions) from a merged config, with defaults for bad values."""
    section = config.get("analysis") or {}
    try:
        max_workers = max(1, int(section.get("max_workers", 1)))
    except (TypeError, ValueError):
        max_workers = 1
    strict = bool(section.get("strict_parse", False))
    extensions = section.get("extensions") or {}
    if not isinstance(extensions, dict):
        extensions = {}
    return max_workers, strict, extensions
