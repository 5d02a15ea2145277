"""Configuration management for sshcall."""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sshcall.core.errors import ConfigurationError
from sshcall.core.types import SessionConfig


class Config:
    """Settings read from a JSON file, overridable from the command line."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, starts empty.
        """
        self._config_path = config_path
        self._config_data: dict[str, Any] = {}

    @classmethod
    def from_file(cls, config_path: Path) -> "Config":
        """Load configuration from a file the user named.

        Args:
            config_path: Path to configuration file.

        Returns:
            Config instance with loaded configuration.

        Raises:
            ConfigurationError: If the file is missing, unreadable or not a
                JSON object.
        """
        instance = cls(Path(config_path).expanduser())
        instance.load()
        return instance

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create configuration from dictionary."""
        instance = cls()
        instance._config_data = data
        return instance

    def load(self) -> None:
        """Read the configuration file, replacing any loaded values."""
        if self._config_path is None:
            return

        path = self._config_path
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {path}") from e
        except OSError as e:
            raise ConfigurationError(
                f"Could not read configuration file {path}: {e}"
            ) from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Invalid configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file {path} must contain an object"
            )
        self._config_data = data

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            key: Configuration key (supports dot notation).
            default: Default value if key not found.

        Returns:
            Configuration value.
        """
        value: Any = self._config_data
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def to_session_config(self, **overrides: Any) -> SessionConfig:
        """Convert configuration to SessionConfig.

        Keyword arguments override values from the file; ``None`` and
        empty lists mean "not given" and leave the file value in place.

        Args:
            **overrides: SessionConfig fields to override.

        Returns:
            SessionConfig instance.
        """
        data = dict(self._config_data)
        data.update(
            (key, value)
            for key, value in overrides.items()
            if value is not None and value != []
        )

        try:
            return SessionConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid session configuration: {e}") from e

    @property
    def data(self) -> dict[str, Any]:
        """Get raw configuration data."""
        return self._config_data
