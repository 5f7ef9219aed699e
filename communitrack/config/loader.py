"""Read config.toml and secrets.env, then layer COMMUNITRACK_* variables on top."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from communitrack.config.schema import CommunitrackConfig, SecretsConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "COMMUNITRACK"

# Environment variable -> (TOML table, key)
ENV_MAPPINGS: dict[str, tuple[str, str]] = {
    f"{ENV_PREFIX}_SERVER_HOST": ("server", "host"),
    f"{ENV_PREFIX}_SERVER_PORT": ("server", "port"),
    f"{ENV_PREFIX}_SERVER_DEBUG": ("server", "debug"),
    f"{ENV_PREFIX}_HOST": ("server", "host"),
    f"{ENV_PREFIX}_PORT": ("server", "port"),
    f"{ENV_PREFIX}_DEBUG": ("server", "debug"),
    f"{ENV_PREFIX}_DATABASE_BACKEND": ("database", "backend"),
    f"{ENV_PREFIX}_DATABASE_MONGODB_URL": ("database", "mongodb_url"),
    f"{ENV_PREFIX}_DATABASE_MONGODB_DATABASE": ("database", "mongodb_database"),
    f"{ENV_PREFIX}_MONGODB_URL": ("database", "mongodb_url"),
    "MONGODB_URI": ("database", "mongodb_url"),
    f"{ENV_PREFIX}_SEED_DEMO_ENTRIES": ("database", "seed_demo_entries"),
    f"{ENV_PREFIX}_STORAGE_MAX_UPLOAD_MB": ("storage", "max_upload_mb"),
    f"{ENV_PREFIX}_AUTH_REGISTRATION_ENABLED": ("auth", "registration_enabled"),
    f"{ENV_PREFIX}_AUTH_TOKEN_LIFETIME_MINUTES": ("auth", "token_lifetime_minutes"),
    f"{ENV_PREFIX}_IMPORT_MAX_ROWS": ("import", "max_rows"),
}

# secrets.env / environment name -> SecretsConfig field
SECRET_KEYS: dict[str, str] = {
    f"{ENV_PREFIX}_SECRET_KEY": "secret_key",
    f"{ENV_PREFIX}_MONGODB_URL": "mongodb_url",
}

_INT_KEYS = {"port", "max_upload_mb", "token_lifetime_minutes", "max_rows"}
_BOOL_KEYS = {"debug", "registration_enabled", "seed_demo_entries"}
_TRUE_STRINGS = ("true", "1", "yes")


def _search_paths(filename: str) -> list[Path]:
    return [
        Path.cwd() / filename,
        Path.home() / ".config" / "communitrack" / filename,
        Path("/etc/communitrack") / filename,
    ]


def get_config_search_paths() -> list[Path]:
    """config.toml locations, highest priority first: cwd, user, system."""
    return _search_paths("config.toml")


def get_secrets_search_paths() -> list[Path]:
    return _search_paths("secrets.env")


def _first_existing(paths: list[Path]) -> Path | None:
    for path in paths:
        if path.exists() and path.is_file():
            logger.debug("Using %s", path)
            return path
    return None


def find_config_file() -> Path | None:
    return _first_existing(get_config_search_paths())


def find_secrets_file() -> Path | None:
    return _first_existing(get_secrets_search_paths())


def load_toml_file(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def parse_env_file(path: Path) -> dict[str, str]:
    """Read ``KEY=value`` lines; quotes around the value are stripped.

    Blank lines, ``#`` comments and lines without ``=`` are ignored.
    """
    values: dict[str, str] = {}
    with open(path) as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            values[key.strip()] = value
    return values


def _coerce(key: str, value: str) -> Any:
    if key in _INT_KEYS:
        return int(value)
    if key in _BOOL_KEYS:
        return value.lower() in _TRUE_STRINGS
    return value


def apply_env_overrides(config_dict: dict[str, Any]) -> None:
    """Write every set variable from ENV_MAPPINGS into ``config_dict`` in place."""
    for env_var, (section, key) in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is not None:
            config_dict.setdefault(section, {})[key] = _coerce(key, value)


def load_secrets(secrets_file: Path | None = None) -> SecretsConfig:
    """Load secrets from secrets.env; non-empty environment variables win."""
    found: dict[str, str] = {}

    secrets_file = secrets_file or find_secrets_file()
    if secrets_file and secrets_file.exists():
        logger.info("Loading secrets from: %s", secrets_file)
        file_values = parse_env_file(secrets_file)
        found.update({field: file_values[name] for name, field in SECRET_KEYS.items() if name in file_values})

    found.update({field: os.environ[name] for name, field in SECRET_KEYS.items() if os.environ.get(name)})
    return SecretsConfig(**found)


def load_config(config_file: Path | None = None) -> CommunitrackConfig:
    """Build the configuration from ``config_file`` (or the first one found) plus env overrides."""
    config_file = config_file or find_config_file()
    config_dict: dict[str, Any] = {}
    if config_file and config_file.exists():
        logger.info("Loading config from: %s", config_file)
        config_dict = load_toml_file(config_file)
    else:
        logger.info("No config file found, using defaults with env overrides")

    apply_env_overrides(config_dict)
    return CommunitrackConfig(**config_dict)
