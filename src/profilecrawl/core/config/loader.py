"""
Load ``AppConfig`` from a YAML (or JSON) file.

``${VAR}`` and ``${VAR:-fallback}`` references in string values are
resolved from the environment after ``.env`` has been read, and CLI
flags can be layered on top per section before validation.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .models import AppConfig

DEFAULT_CONFIG_PATH = Path("configs/app.yaml")

_ENV_REF = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or is invalid."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)


def _read_mapping(path: Path) -> dict[str, Any]:
    """Parse ``path`` and return its top-level mapping (empty file -> {}).

    Raises:
        ConfigError: Missing, unreadable or unparsable file, or a
            document whose top level is not a mapping
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}", path=path, details=str(e)) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}", path=path, details=str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping", path=path)
    return data


def _resolve_env(value: Any) -> Any:
    """Substitute environment references in every nested string."""
    if isinstance(value, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), value)
    if isinstance(value, dict):
        return {key: _resolve_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_resolve_env(item) for item in value]
    return value


def _apply_overrides(
    data: dict[str, Any],
    overrides: Mapping[str, Mapping[str, Any]],
) -> dict[str, Any]:
    """Merge section overrides into ``data``; ``None`` leaves a value alone."""
    merged = dict(data)
    for section, values in overrides.items():
        current = dict(merged.get(section) or {})
        current.update({key: value for key, value in values.items() if value is not None})
        merged[section] = current
    return merged


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> AppConfig:
    """Build the validated, frozen application configuration.

    Args:
        path: Config file; when omitted ``configs/app.yaml`` is used if it
              exists, otherwise built-in defaults
        expand_env: Resolve ``${VAR}`` references
        overrides: Per-section values applied last,
                   e.g. ``{"crawl": {"batch_size": 2}}``

    Raises:
        ConfigError: If the file is unusable or validation fails
    """
    load_dotenv(find_dotenv(usecwd=True))

    if path is None:
        path = DEFAULT_CONFIG_PATH
        data = _read_mapping(path) if path.exists() else {}
    else:
        path = Path(path)
        data = _read_mapping(path)

    if expand_env:
        data = _resolve_env(data)
    if overrides:
        data = _apply_overrides(data, overrides)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}", path=path, details=str(e)) from e


def validate_config_file(path: Path | str) -> list[str]:
    """Return ``section.field: message`` strings for every problem in a file."""
    path = Path(path)
    try:
        data = _resolve_env(_read_mapping(path))
    except ConfigError as e:
        return [str(e)]

    try:
        AppConfig.model_validate(data)
    except ValidationError as e:
        return [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
    return []
