"""Process-wide settings: config.toml sections plus secrets from secrets.env."""

import logging
import secrets as secrets_module

from communitrack.config.loader import load_config, load_secrets
from communitrack.config.schema import (
    AuthConfig,
    CommunitrackConfig,
    DatabaseConfig,
    ImportConfig,
    SecretsConfig,
    ServerConfig,
    StorageConfig,
)

logger = logging.getLogger(__name__)


class Settings:
    """Loaded configuration and secrets.

    Sections are read through ``settings.server``, ``settings.database`` and
    so on. Only values derived from more than one source get their own
    property.
    """

    def __init__(
        self,
        config: CommunitrackConfig | None = None,
        secrets: SecretsConfig | None = None,
    ):
        self.config = config or load_config()
        self._secrets = secrets or load_secrets()

        if not self._secrets.secret_key:
            self._secrets.secret_key = secrets_module.token_urlsafe(32)
            logger.warning(
                "SECURITY WARNING: No secret key configured. A random key was generated, "
                "so issued tokens stop working on restart. Set COMMUNITRACK_SECRET_KEY."
            )

    @property
    def server(self) -> ServerConfig:
        return self.config.server

    @property
    def database(self) -> DatabaseConfig:
        return self.config.database

    @property
    def storage(self) -> StorageConfig:
        return self.config.storage

    @property
    def auth(self) -> AuthConfig:
        return self.config.auth

    @property
    def imports(self) -> ImportConfig:
        return self.config.imports

    @property
    def mongodb_url(self) -> str | None:
        # secrets.env wins over config.toml
        return self._secrets.mongodb_url or self.database.mongodb_url

    @property
    def database_backend(self) -> str:
        """Effective backend: "mongodb" or "memory"."""
        backend = self.database.backend
        if backend == "auto":
            return "mongodb" if self.mongodb_url else "memory"
        return backend

    @property
    def secret_key(self) -> str:
        return self._secrets.secret_key or ""


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the shared Settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the shared Settings so the next access reloads them."""
    global _settings
    _settings = None


class _SettingsProxy:
    """Module-level stand-in that defers loading until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()
