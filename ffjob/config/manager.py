"""
Configuration loading for ffjob.

The configuration lives in a YAML file. It is looked up in this order: an
explicit path, the file named by ``$FFJOB_CONFIG``, then the default
locations. Without any file the built-in defaults apply.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ffjob.config.models import FFJobConfig
from ffjob.utils import ConfigurationError, get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "FFJOB_CONFIG"


class ConfigManager:
    """Loads, caches and writes the ffjob configuration file."""

    DEFAULT_CONFIG_LOCATIONS = [
        Path.home() / ".ffjob.yaml",
        Path.home() / ".config" / "ffjob" / "config.yaml",
        Path.cwd() / ".ffjob.yaml",
    ]

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: File to use instead of searching for one
        """
        self.config_path = config_path
        self._config: Optional[FFJobConfig] = None

    @property
    def config(self) -> FFJobConfig:
        """The loaded configuration; read from disk on first access."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def _explicit_path(self, config_path: Optional[Path]) -> Optional[Path]:
        if config_path or self.config_path:
            return config_path or self.config_path
        env_path = os.environ.get(CONFIG_ENV_VAR)
        return Path(env_path).expanduser() if env_path else None

    def load(self, config_path: Optional[Path] = None) -> FFJobConfig:
        """
        Read the configuration.

        Args:
            config_path: File to read (overrides the path given at construction)

        Returns:
            Parsed configuration, or the defaults when no file is found

        Raises:
            ConfigurationError: If a named file is missing, or any file found
                is unreadable or invalid
        """
        path = self._explicit_path(config_path)
        if path is not None:
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")
            return self._load_from_file(path)

        found = next((p for p in self.DEFAULT_CONFIG_LOCATIONS if p.exists()), None)
        if found is None:
            logger.debug("No configuration file found, using defaults")
            return FFJobConfig.create_default()

        logger.info(f"Loading configuration from {found}")
        return self._load_from_file(found)

    def _load_from_file(self, path: Path) -> FFJobConfig:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

        if data is None:
            raise ConfigurationError(f"Configuration file is empty: {path}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration must be a mapping: {path}")

        try:
            config = FFJobConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

        logger.debug(f"Loaded configuration from {path}")
        return config

    def save(self, path: Optional[Path] = None, config: Optional[FFJobConfig] = None) -> None:
        """
        Write a configuration as YAML.

        Args:
            path: Destination (the manager's path, else the first default location)
            config: What to write (the current configuration if None)

        Raises:
            ConfigurationError: If the file cannot be written
        """
        target = path or self.config_path or self.DEFAULT_CONFIG_LOCATIONS[0]
        data = (config or self.config).model_dump(mode="json")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(
                yaml.safe_dump(data, default_flow_style=False, sort_keys=False, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration to {target}: {e}") from e

        logger.info(f"Configuration saved to {target}")

    def init_default_config(self, path: Optional[Path] = None, force: bool = False) -> Path:
        """
        Write a configuration file holding the defaults.

        Args:
            path: Destination (the first default location if None)
            force: Replace an existing file

        Returns:
            The file written

        Raises:
            ConfigurationError: If the file exists and ``force`` is False
        """
        target = path or self.DEFAULT_CONFIG_LOCATIONS[0]
        if target.exists() and not force:
            raise ConfigurationError(
                f"Configuration file already exists: {target}. Use force=True to overwrite."
            )

        self.save(target, FFJobConfig.create_default())
        return target

    def reload(self) -> FFJobConfig:
        """Drop the cached configuration and read it again."""
        self._config = None
        return self.config


_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """
    Return the process-wide configuration manager.

    ``config_path`` only has an effect on the first call, which creates it.
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager(config_path)
    return _config_manager


def get_config(config_path: Optional[Path] = None) -> FFJobConfig:
    """Return the process-wide configuration."""
    return get_config_manager(config_path).config
