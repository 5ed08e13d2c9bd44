"""
mockfs Core Module

Session plumbing shared by every subsystem:
- Subsystem lifecycle base
- Configuration Loader
"""

from .registry import Subsystem, SubsystemState
from .config_loader import (
    ConfigLoader,
    Config,
    FilesystemConfig,
    SessionConfig,
    LoggingConfig,
    get_config,
)

__all__ = [
    # Registry
    'Subsystem',
    'SubsystemState',
    # Config
    'ConfigLoader',
    'Config',
    'FilesystemConfig',
    'SessionConfig',
    'LoggingConfig',
    'get_config',
]
