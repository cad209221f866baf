"""
roster_sync.config - Configuration management module

Contains YAML configuration loading, validation, and default settings.
"""

from roster_sync.config.generator import generate_default_config, save_config_file
from roster_sync.config.loader import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_MAX_MEMBERS,
    DEFAULT_SHEET_NAME,
    DEFAULT_TITLE_PREFIX,
    ConfigError,
    ConfigLoader,
)

__all__ = [
    "ConfigError",
    "ConfigLoader",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_MAX_MEMBERS",
    "DEFAULT_SHEET_NAME",
    "DEFAULT_TITLE_PREFIX",
    "generate_default_config",
    "save_config_file",
]
