"""Configuration loading utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..schemas.config import AppConfig, load_config


class ConfigManager:
    """YAML-backed configuration loader for named config files."""

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)

    def load(self, name: str) -> AppConfig:
        """Load and validate a configuration by name without file extension."""
        return load_config_file(self._base_path / f"{name}.yaml")


def read_yaml(path: str | Path) -> Any:
    with Path(path).open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def load_config_file(path: str | Path | None) -> AppConfig:
    """Return the validated config at ``path``, or defaults when no path is given."""
    if path is None:
        return AppConfig()
    return load_config(read_yaml(path))


__all__ = ["AppConfig", "ConfigManager", "load_config_file", "read_yaml"]
