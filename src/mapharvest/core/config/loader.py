"""
Configuration loader for YAML files.

Loads and validates configuration and query lists into Pydantic models.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import AppConfig, QueryEntry


ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)


def _load_yaml_file(path: Path) -> Any:
    """Load a YAML file and return its parsed contents.

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}",
            path=path,
            details=str(e),
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Cannot read {path}",
            path=path,
            details=str(e),
        ) from e


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in string values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    if isinstance(data, str):
        def replacer(match: re.Match[str]) -> str:
            return os.environ.get(match.group(1), match.group(2) or "")

        return ENV_PATTERN.sub(replacer, data)
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Load application configuration from YAML file.

    Args:
        path: Path to app.yaml (default: configs/app.yaml)
        expand_env: Whether to expand environment variables

    Returns:
        Validated AppConfig instance; defaults if the default file is absent

    Raises:
        ConfigError: If configuration is invalid, or an explicit path is missing
    """
    if path is None:
        path = Path("configs/app.yaml")
        if not path.exists():
            return AppConfig()
    else:
        path = Path(path)

    data = _load_yaml_file(path) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}", path=path)

    if expand_env:
        data = _expand_env_vars(data)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid app configuration in {path}",
            path=path,
            details=str(e),
        ) from e


def load_queries(path: Path | str) -> list[QueryEntry]:
    """Load the ordered query source.

    YAML files hold a list of ``{name: ...}`` mappings (bare strings are
    accepted too), optionally under a top-level ``queries`` key. Any other
    extension is read as plain text, one name per line; blank lines and
    ``#`` comments are ignored.

    Raises:
        ConfigError: If the file is missing or malformed
    """
    path = Path(path)

    if path.suffix.lower() not in {".yaml", ".yml"}:
        if not path.exists():
            raise ConfigError(f"Query file not found: {path}", path=path)
        lines = path.read_text(encoding="utf-8").splitlines()
        return [
            QueryEntry(name=line.strip())
            for line in lines
            if line.strip() and not line.lstrip().startswith("#")
        ]

    data = _load_yaml_file(path)
    if isinstance(data, dict):
        data = data.get("queries")
    if not isinstance(data, list):
        raise ConfigError(f"Expected a list of queries in {path}", path=path)

    entries: list[QueryEntry] = []
    for index, raw in enumerate(data):
        if isinstance(raw, str):
            raw = {"name": raw}
        try:
            entries.append(QueryEntry.model_validate(raw))
        except ValidationError as e:
            raise ConfigError(
                f"Invalid query #{index + 1} in {path}",
                path=path,
                details=str(e),
            ) from e

    return entries
