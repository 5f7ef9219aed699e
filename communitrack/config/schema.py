"""Pydantic models for CommuniTrack configuration.

These models define the structure of config.toml and secrets.env files.
"""

from typing import Literal

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    enforce_https: bool = False
    rate_limit_per_minute: int = 60
    # CORS configuration - empty list means same-origin only
    cors_origins: list[str] = []


class DatabaseConfig(BaseModel):
    """Persistence backend configuration.

    ``backend = "auto"`` uses MongoDB when a URL is configured and falls back
    to the in-memory store otherwise.
    """

    backend: Literal["auto", "mongodb", "memory"] = "auto"
    mongodb_url: str | None = None
    mongodb_database: str = "communitrack"
    min_pool_size: int = 1
    max_pool_size: int = 20
    # Seed two welcome entries for users of the in-memory store
    seed_demo_entries: bool = False


class StorageConfig(BaseModel):
    """Upload limits."""

    max_upload_mb: int = 10

    @property
    def max_upload_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_mb * 1024 * 1024


class AuthConfig(BaseModel):
    """Authentication configuration."""

    registration_enabled: bool = True
    token_lifetime_minutes: int = 120
    auth_rate_limit_per_minute: int = 30


class ImportConfig(BaseModel):
    """Spreadsheet import configuration."""

    max_rows: int = 5000
    preview_rows: int = 3
    # Warn when a slash/dot date reads differently in day-first and month-first order
    flag_ambiguous_dates: bool = True


class CommunitrackConfig(BaseModel):
    """Main CommuniTrack configuration loaded from config.toml."""

    app_name: str = "CommuniTrack"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    imports: ImportConfig = Field(default_factory=ImportConfig, alias="import")

    model_config = {"populate_by_name": True}


class SecretsConfig(BaseModel):
    """Secrets loaded from secrets.env file.

    These are sensitive values that should not be stored in config.toml.
    """

    secret_key: str | None = None
    mongodb_url: str | None = None
