"""Configuration loading and user-override persistence."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ecoflux.config.schema import AppConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """Reads the defaults YAML, layers the user YAML on top, and validates the result."""

    def __init__(
        self,
        defaults_path: Path | None = None,
        user_path: Path | None = None,
    ) -> None:
        self._defaults_path = defaults_path or Path("config.defaults.yaml")
        self._user_path = user_path or Path("config.yaml")
        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded. Call load() first.")
        return self._config

    @property
    def user_path(self) -> Path:
        return self._user_path

    def load(self) -> AppConfig:
        """Load defaults, apply user overrides, and validate."""
        merged = self._deep_merge(
            self._load_yaml(self._defaults_path),
            self._load_yaml(self._user_path),
        )
        config = AppConfig.model_validate(merged)
        self._config = config
        logger.info(
            "Configuration loaded (defaults=%s user=%s)",
            self._defaults_path,
            self._user_path if self._user_path.exists() else "-",
        )
        return config

    def save_user_config(self, updates: dict[str, Any]) -> AppConfig:
        """Merge *updates* into the user YAML, validate, write, and reload.

        The file is only written once the merged result validates, so a bad
        update leaves the previous user config untouched.
        """
        current = self._load_yaml(self._user_path)
        merged_user = self._deep_merge(current, updates)
        AppConfig.model_validate(
            self._deep_merge(self._load_yaml(self._defaults_path), merged_user)
        )
        with open(self._user_path, "w") as f:
            yaml.safe_dump(merged_user, f, default_flow_style=False, sort_keys=False)
        logger.info("User config updated: %s", ", ".join(sorted(updates)) or "-")
        return self.load()

    @staticmethod
    def _load_yaml(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with open(path) as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge override into base, returning a new dict."""
        result = dict(base)
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = ConfigManager._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
