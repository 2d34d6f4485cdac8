"""
Configuration module for dojocho.

Exports the main components for convenient imports.
"""

from .loader import find_config_file, find_project_root, load_config
from .schema import DEFAULT_REGISTRIES, AppConfig, HttpConfig, LoggingConfig

__all__ = [
    "load_config",
    "find_config_file",
    "find_project_root",
    "AppConfig",
    "HttpConfig",
    "LoggingConfig",
    "DEFAULT_REGISTRIES",
]
