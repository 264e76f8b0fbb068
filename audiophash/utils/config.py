"""
Configuration management for audiophash.

Loads configuration from YAML files with environment variable
interpolation. Pipeline parameters live under the "pipeline" section and
are turned into a PipelineConfig by audiophash.core.models.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from audiophash.utils.errors import ConfigurationError


class ConfigManager:
    """
    Manages configuration loaded from YAML files.

    Features:
    - YAML configuration loading
    - Environment variable interpolation (${VAR_NAME})
    - Nested key access with dot notation
    - Schema validation
    """

    _env_pattern = re.compile(r"\$\{([^}]+)\}")

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = config_dict or {}

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from a YAML file.

        Args:
            file_path: Path to YAML configuration file

        Returns:
            ConfigManager: Initialized with file contents

        Raises:
            ConfigurationError: If the file is missing, unparsable, or not
                a mapping at the top level
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path),
            )

        try:
            with open(file_path, "r") as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path),
            )

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping, got {type(config_dict).__name__}",
                config_key=str(file_path),
            )

        manager = cls(config_dict)
        manager._config = manager._interpolate(manager._config)
        return manager

    def _interpolate(self, value: Any) -> Any:
        """Recursively replace ${ENV_VAR} patterns in string values."""
        if isinstance(value, dict):
            return {k: self._interpolate(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._interpolate(item) for item in value]
        if isinstance(value, str):
            return self._env_pattern.sub(self._replace_env, value)
        return value

    @staticmethod
    def _replace_env(match: "re.Match[str]") -> str:
        # Unset variables are left as written
        value = os.environ.get(match.group(1))
        return match.group(0) if value is None else value

    def get(self, key: str, default: Any = None, required: bool = False) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key, e.g. "pipeline.frame_size"
            default: Default value if key not found
            required: If True, raise error when key not found

        Raises:
            ConfigurationError: If required key is not found
        """
        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key,
                    )
                return default
        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Get an entire section as a dictionary (empty dict if absent)."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        parts = key.split(".")
        current = self._config
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the configuration."""
        return copy.deepcopy(self._config)

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Schema format:
            {
                "pipeline.frame_size": {"type": int, "required": True},
                "logging.level": {"type": str},
            }

        Raises:
            ConfigurationError: If a required key is missing or a value has
                the wrong type
        """
        for key, rules in schema.items():
            value = self.get(key)
            expected_type = rules.get("type")

            if value is None:
                if rules.get("required", False):
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key,
                    )
                continue

            if expected_type and not isinstance(value, expected_type):
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {expected_type.__name__}, "
                    f"got {type(value).__name__}",
                    config_key=key,
                )


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Missing sections in the file are filled from get_default_config().

    Args:
        config_path: Optional path to config file. If None, tries
            "config/config.yaml", "config.yaml" and the project config dir.

    Returns:
        Dict[str, Any]: Configuration dictionary
    """
    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
        ]
        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    config = get_default_config()
    if config_path:
        loaded = ConfigManager.from_file(Path(config_path)).to_dict()
        for section, values in loaded.items():
            if isinstance(values, dict) and isinstance(config.get(section), dict):
                config[section].update(values)
            else:
                config[section] = values
    return config


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "pipeline": {
            "target_sample_rate": 44100,
            "frame_size": 2048,
            "num_bins": 64,
            "aggregation": "median",
            "log_compress": True,
            "max_workers": 1,
        },
        "logging": {
            "level": "INFO",
            "format": "text",
        },
    }
