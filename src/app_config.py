"""Config file discovery, TOML loading, and environment secrets."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for older runtimes
    import tomli as tomllib  # type: ignore

from app_config_parser import parse_app_config
from app_config_schema import (
    DEFAULT_CONFIG_FILE,
    AppConfig,
    AppConfigurationError,
    FocusSettings,
    NotificationSettings,
    PersistenceSettings,
    SecretConfig,
    SessionGatewaySettings,
    UIServerSettings,
)

CONFIG_PATH_ENV = "APP_CONFIG_FILE"
API_TOKEN_ENV = "FOCUS_API_TOKEN"

__all__ = [
    "API_TOKEN_ENV",
    "AppConfig",
    "AppConfigurationError",
    "FocusSettings",
    "NotificationSettings",
    "PersistenceSettings",
    "SecretConfig",
    "SessionGatewaySettings",
    "UIServerSettings",
    "load_app_config",
    "load_secret_config",
    "resolve_config_path",
]


def resolve_config_path(config_path: str | None = None) -> Path:
    """Pick the config file: explicit argument, then `APP_CONFIG_FILE`, then cwd."""
    raw = config_path or os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_FILE
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    return path


def load_app_config(config_path: str | None = None) -> AppConfig:
    path = resolve_config_path(config_path)
    if not path.exists():
        raise AppConfigurationError(f"Config file not found: {path}")
    if not path.is_file():
        raise AppConfigurationError(f"Config path is not a file: {path}")

    try:
        with open(path, "rb") as fh:
            raw = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as error:
        raise AppConfigurationError(f"Failed to parse config TOML: {error}") from error

    if not isinstance(raw, Mapping):
        raise AppConfigurationError("Root config TOML object must be a table.")

    return parse_app_config(raw, base_dir=path.parent, source_file=str(path))


def load_secret_config(
    *,
    environ: Mapping[str, str] | None = None,
) -> SecretConfig:
    env = environ if environ is not None else os.environ
    api_token = env.get(API_TOKEN_ENV, "").strip() or None
    return SecretConfig(api_token=api_token)
