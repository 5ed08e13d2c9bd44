"""
mockfs Configuration Loader

Configuration for mock sessions:
- JSON configuration file loading
- Default value handling
- Runtime configuration updates
- Type-safe access to configuration values

This configures the engine itself (limits, credentials, logging). The
tree a session starts from is passed to ``mockfs.create`` directly.
"""

import json
import threading
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, List

from mockfs.exceptions import ConfigValidationError


@dataclass
class FilesystemConfig:
    """Filesystem engine settings."""
    max_open_files: int = 1024
    max_symlinks: int = 40  # Linux MAXSYMLINKS
    umask: int = 0o022
    dev: int = 8675309
    uid: Optional[int] = None  # None = the host process uid
    gid: Optional[int] = None
    cwd: Optional[str] = None  # None = the host process cwd


@dataclass
class SessionConfig:
    """Session creation settings."""
    create_cwd: bool = True
    create_tmp: bool = True
    exclude_paths: List[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "WARNING"
    log_file: Optional[str] = None
    console_output: bool = False


@dataclass
class Config:
    """
    Main configuration container.

    Holds all configuration settings for mock sessions.
    """
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigLoader:
    """
    Configuration loader and manager.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load('mockfs.json')
        >>> config.filesystem.max_open_files
        1024
    """

    _instance: Optional['ConfigLoader'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'ConfigLoader':
        """Singleton pattern for configuration access."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._config = Config()
                cls._instance._loaded = False
            return cls._instance

    def load(self, config_path: str) -> Config:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file (on the host)

        Returns:
            Config object with loaded settings

        Raises:
            ConfigValidationError: If the file cannot be loaded or parsed
        """
        path = Path(config_path)

        if not path.exists():
            raise ConfigValidationError(
                f"Configuration file not found: {config_path}"
            )

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(
                f"Invalid JSON in configuration file: {e}"
            ) from e
        except OSError as e:
            raise ConfigValidationError(
                f"Cannot read configuration file: {e}"
            ) from e

        return self.load_dict(data)

    def load_dict(self, data: dict[str, Any]) -> Config:
        """Replace the current configuration with one parsed from ``data``."""
        self._config = self._parse_config(data)
        self._loaded = True
        return self._config

    def _parse_config(self, data: dict[str, Any]) -> Config:
        """Parse configuration data into a Config object."""
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration root must be an object")

        config = Config()

        for section, section_data in data.items():
            current = getattr(config, section, None)
            if current is None or not hasattr(current, '__dataclass_fields__'):
                raise ConfigValidationError(
                    f"Unknown configuration section: {section}", key=section
                )
            if not isinstance(section_data, dict):
                raise ConfigValidationError(
                    f"Configuration section must be an object: {section}",
                    key=section
                )

            known = {f.name for f in fields(current)}
            for key, value in section_data.items():
                if key not in known:
                    raise ConfigValidationError(
                        f"Invalid configuration key: {section}.{key}",
                        key=f"{section}.{key}"
                    )
                setattr(current, key, value)

        return config

    @property
    def config(self) -> Config:
        """Get the current configuration."""
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., 'filesystem.umask')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        obj: Any = self._config

        for part in key.split('.'):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default

        return obj

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value at runtime.

        Args:
            key: Dot-notation key (e.g., 'filesystem.max_open_files')
            value: Value to set
        """
        parts = key.split('.')
        obj: Any = self._config

        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise ConfigValidationError(f"Invalid configuration key: {key}", key=key)

        final_key = parts[-1]
        if hasattr(obj, final_key):
            setattr(obj, final_key, value)
        else:
            raise ConfigValidationError(f"Invalid configuration key: {key}", key=key)

    def reset(self) -> None:
        """Restore default configuration."""
        self._config = Config()
        self._loaded = False

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        def dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, '__dataclass_fields__'):
                return {
                    k: dataclass_to_dict(v)
                    for k, v in obj.__dict__.items()
                }
            elif isinstance(obj, list):
                return [dataclass_to_dict(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: dataclass_to_dict(v) for k, v in obj.items()}
            else:
                return obj

        return dataclass_to_dict(self._config)


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config object with current settings
    """
    return ConfigLoader().config
