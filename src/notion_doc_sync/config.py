"""Project configuration from ``.notion-doc-sync.yml`` and the environment."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = ".notion-doc-sync.yml"

DEFAULT_EXCLUDE_PATTERNS = (
    "node_modules/**",
    "dist/**",
    "**/*.test.ts",
    "**/*.spec.ts",
    "**/__tests__/**",
    ".git/**",
)


class ConfigError(Exception):
    """Raised when the config file is malformed or a required field is missing."""


@dataclass(frozen=True)
class AppConfig:
    """Resolved configuration for one command invocation."""

    notion_api_key: str = ""
    notion_database_id: str = ""
    source_dir: str = "./src"
    docs_dir: str = "./notionDocs"
    exclude_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    request_timeout: float = 30.0


def default_config() -> dict[str, Any]:
    """Template written by ``notion-doc-sync init``."""
    return {
        "notion_api_key": "",
        "notion_database_id": "",
        "source_dir": "./src",
        "docs_dir": "./notionDocs",
        "exclude_patterns": list(DEFAULT_EXCLUDE_PATTERNS),
        "request_timeout": 30.0,
    }


def _load_config_file(config_path: Path) -> dict[str, Any]:
    if not config_path.is_file():
        return {}

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to parse config file: {config_path}"
        raise ConfigError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Failed to parse config file: {config_path}"
        raise ConfigError(msg)
    return data


def load_config(
    project_root: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Resolve config: defaults, then the YAML file, then environment overrides.

    ``NOTION_API_KEY`` and ``NOTION_DATABASE_ID`` win over the file when set
    and non-empty.

    Raises
    ------
    ConfigError
        If the config file exists but cannot be parsed.
    """
    root = project_root or Path.cwd()
    environ = os.environ if env is None else env
    data = _load_config_file(root / CONFIG_FILENAME)

    try:
        timeout = float(data.get("request_timeout", 30.0))
    except (TypeError, ValueError) as exc:
        msg = f"Invalid request_timeout in {root / CONFIG_FILENAME}: {data['request_timeout']!r}"
        raise ConfigError(msg) from exc

    excludes = data.get("exclude_patterns")
    return AppConfig(
        notion_api_key=environ.get("NOTION_API_KEY") or str(data.get("notion_api_key") or ""),
        notion_database_id=(
            environ.get("NOTION_DATABASE_ID") or str(data.get("notion_database_id") or "")
        ),
        source_dir=str(data.get("source_dir") or "./src"),
        docs_dir=str(data.get("docs_dir") or "./notionDocs"),
        exclude_patterns=(
            [str(p) for p in excludes] if excludes is not None else list(DEFAULT_EXCLUDE_PATTERNS)
        ),
        request_timeout=timeout,
    )


_REQUIRED_MESSAGES = {
    "notion_api_key": (
        f"Notion API key is required. Set notion_api_key in {CONFIG_FILENAME} "
        "or the NOTION_API_KEY environment variable. "
        "Run `notion-doc-sync init` to create one."
    ),
    "notion_database_id": (
        f"Notion database ID is required. Set notion_database_id in {CONFIG_FILENAME} "
        "or the NOTION_DATABASE_ID environment variable. "
        "Run `notion-doc-sync init` to create one."
    ),
}


def validate_config(config: AppConfig, required: Iterable[str]) -> None:
    """Check that every field in *required* is set.

    Raises
    ------
    ConfigError
        Listing every missing field at once.
    """
    errors = [
        _REQUIRED_MESSAGES[name]
        for name in required
        if name in _REQUIRED_MESSAGES and not getattr(config, name)
    ]
    if errors:
        msg = "Configuration errors:\n  - " + "\n  - ".join(errors)
        raise ConfigError(msg)


def write_default_config(project_root: Path) -> Path | None:
    """Write the config template; returns None if a config already exists."""
    config_path = project_root / CONFIG_FILENAME
    if config_path.exists():
        return None
    config_path.write_text(
        yaml.dump(default_config(), default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return config_path
