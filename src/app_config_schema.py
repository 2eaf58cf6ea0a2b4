"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_CONFIG_FILE = "config.toml"
DEFAULT_SNAPSHOT_FILE = "~/.local/state/focus-engine/timer_state.json"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class FocusSettings:
    """Phase durations and sound preference from `[focus]`."""
    focus_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    sound_enabled: bool = True


@dataclass(frozen=True)
class SessionGatewaySettings:
    """Session API endpoint settings from `[session_gateway]`."""
    base_url: str
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class PersistenceSettings:
    """Snapshot storage location from `[persistence]`."""
    snapshot_file: str = DEFAULT_SNAPSHOT_FILE


@dataclass(frozen=True)
class NotificationSettings:
    """Chime output and desktop notification settings from `[notifications]`."""
    desktop_enabled: bool = True
    output_device: Optional[int] = None
    volume: float = 0.3


@dataclass(frozen=True)
class UIServerSettings:
    """Built-in UI server settings from `[ui_server]`."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    index_file: str = ""


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    focus: FocusSettings
    session_gateway: SessionGatewaySettings
    persistence: PersistenceSettings
    notifications: NotificationSettings
    ui_server: UIServerSettings
    source_file: str


@dataclass(frozen=True)
class SecretConfig:
    """Environment-provided secrets kept out of `config.toml`."""
    api_token: Optional[str]
