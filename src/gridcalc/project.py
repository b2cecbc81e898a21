"""Evaluation configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from gridcalc.cell_graph import DEFAULT_MAX_DEPTH

CONFIG_FILENAME = "gridcalc.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "max_depth": DEFAULT_MAX_DEPTH,
    "strict_formulas": True,
    "grid_warnings": True,
    "logging_dir": None,  # NDJSON event log; disabled when unset
    "logging_fsync": False,
}


class ConfigError(ValueError):
    """The configuration file is malformed."""


def load_config(path: Path | str | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file, with defaults.

    If *path* is a directory, ``gridcalc.yaml`` inside it is used.  A
    missing file yields the defaults.

    Args:
        path: Config file or directory containing one.

    Returns:
        Merged configuration dict.

    Raises:
        ConfigError: If the file is not valid YAML, is not a mapping, or a
            known key has the wrong type.
    """
    config = dict(DEFAULT_CONFIG)
    if path is None:
        return config

    config_path = Path(path)
    if config_path.is_dir():
        config_path = config_path / CONFIG_FILENAME
    if not config_path.exists():
        return config

    try:
        user_config = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"{config_path} is not UTF-8 text") from exc
    if not isinstance(user_config, dict):
        raise ConfigError(f"{config_path} must contain a mapping")
    config.update(user_config)
    _validate(config)
    return config


def _validate(config: dict[str, Any]) -> None:
    depth = config.get("max_depth")
    if not isinstance(depth, int) or isinstance(depth, bool) or depth < 1:
        raise ConfigError(f"max_depth must be a positive integer, got {depth!r}")
    for key in ("strict_formulas", "grid_warnings", "logging_fsync"):
        if not isinstance(config.get(key), bool):
            raise ConfigError(f"{key} must be true or false, got {config.get(key)!r}")
    log_dir = config.get("logging_dir")
    if log_dir is not None and not isinstance(log_dir, str):
        raise ConfigError(f"logging_dir must be a path string, got {log_dir!r}")
