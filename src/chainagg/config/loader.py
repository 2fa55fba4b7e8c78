"""YAML configuration loader with environment variable support."""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Pattern to match ${VAR_NAME} or ${VAR_NAME:default_value}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def _substitute_env_vars(value: Any) -> Any:
    """
    Recursively substitute environment variables in a value.

    Supports:
    - ${VAR_NAME} - required env var (empty string when unset)
    - ${VAR_NAME:default} - env var with default value
    """
    if isinstance(value, str):

        def replacer(match: re.Match) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            return match.group(2) if match.group(2) is not None else ""

        return ENV_VAR_PATTERN.sub(replacer, value)

    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]

    return value


def load_yaml_config(path: Path | str) -> dict[str, Any]:
    """
    Load a YAML configuration file with environment variable substitution.

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the YAML is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        return {}

    return _substitute_env_vars(raw_config)


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Deep merge configuration dictionaries; later ones win."""
    result: dict[str, Any] = {}
    for config in configs:
        result = _deep_merge(result, config)
    return result


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class ConfigLoader:
    """
    Loads and caches named configuration files from a directory.

    ``load("settings")`` reads ``settings.yaml`` (or ``settings.yml``).
    A ``settings.local.yaml`` next to it is merged on top when present.
    """

    def __init__(self, config_dir: Path | str = "config"):
        self.config_dir = Path(config_dir)
        self._cache: dict[str, dict[str, Any]] = {}

    def _find(self, name: str) -> Path | None:
        for suffix in (".yaml", ".yml"):
            path = self.config_dir / f"{name}{suffix}"
            if path.exists():
                return path
        return None

    def load(self, name: str, *, reload: bool = False) -> dict[str, Any]:
        """
        Load a configuration file by name (without extension).

        Raises:
            FileNotFoundError: If neither the file nor a local override exists
        """
        if not reload and name in self._cache:
            return self._cache[name]

        base_path = self._find(name)
        local_path = self._find(f"{name}.local")
        if base_path is None and local_path is None:
            raise FileNotFoundError(
                f"Config '{name}' not found in {self.config_dir}"
            )

        config = load_yaml_config(base_path) if base_path else {}
        if local_path:
            logger.debug(f"Merging local overrides from {local_path}")
            config = merge_configs(config, load_yaml_config(local_path))

        self._cache[name] = config
        return config

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self._cache.clear()
