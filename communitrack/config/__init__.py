"""CommuniTrack configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Environment variables (highest priority)
2. ./config.toml (project root - for development)
3. ~/.config/communitrack/config.toml (user config)
4. /etc/communitrack/config.toml (system config)

Secrets are loaded from secrets.env files in the same directories.
"""

from communitrack.config.schema import (
    AuthConfig,
    CommunitrackConfig,
    DatabaseConfig,
    ImportConfig,
    SecretsConfig,
    ServerConfig,
    StorageConfig,
)
from communitrack.config.settings import Settings, get_settings, reset_settings, settings

__all__ = [
    "AuthConfig",
    "CommunitrackConfig",
    "DatabaseConfig",
    "ImportConfig",
    "SecretsConfig",
    "ServerConfig",
    "Settings",
    "StorageConfig",
    "get_settings",
    "reset_settings",
    "settings",
]
