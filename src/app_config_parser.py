"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from app_config_schema import (
    DEFAULT_SNAPSHOT_FILE,
    AppConfig,
    AppConfigurationError,
    FocusSettings,
    NotificationSettings,
    PersistenceSettings,
    SessionGatewaySettings,
    UIServerSettings,
)

_SECRET_GATEWAY_FIELDS = ("api_token", "token", "bearer_token")


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    focus = _parse_focus_settings(_section(raw, "focus"))
    session_gateway = _parse_session_gateway_settings(_section(raw, "session_gateway"))
    persistence = _parse_persistence_settings(
        _section(raw, "persistence"),
        base_dir=base_dir,
    )
    notifications = _parse_notification_settings(_section(raw, "notifications"))
    ui_server = _parse_ui_server_settings(_section(raw, "ui_server"), base_dir=base_dir)

    return AppConfig(
        focus=focus,
        session_gateway=session_gateway,
        persistence=persistence,
        notifications=notifications,
        ui_server=ui_server,
        source_file=source_file,
    )


def _parse_focus_settings(section: Mapping[str, Any]) -> FocusSettings:
    return FocusSettings(
        focus_minutes=_as_positive_int(
            section.get("focus_minutes", 25),
            "focus.focus_minutes",
        ),
        short_break_minutes=_as_positive_int(
            section.get("short_break_minutes", 5),
            "focus.short_break_minutes",
        ),
        long_break_minutes=_as_positive_int(
            section.get("long_break_minutes", 15),
            "focus.long_break_minutes",
        ),
        sound_enabled=_as_bool(section.get("sound_enabled", True), "focus.sound_enabled"),
    )


def _parse_session_gateway_settings(section: Mapping[str, Any]) -> SessionGatewaySettings:
    _forbid_secret_fields(section, "session_gateway", _SECRET_GATEWAY_FIELDS)
    timeout_seconds = _as_float(
        section.get("timeout_seconds", 10.0),
        "session_gateway.timeout_seconds",
    )
    if timeout_seconds <= 0:
        raise AppConfigurationError("session_gateway.timeout_seconds must be > 0.")
    return SessionGatewaySettings(
        base_url=_required_str(section, "base_url", "session_gateway").rstrip("/"),
        timeout_seconds=timeout_seconds,
    )


def _parse_persistence_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> PersistenceSettings:
    snapshot_file = _as_str(
        section.get("snapshot_file", DEFAULT_SNAPSHOT_FILE),
        "persistence.snapshot_file",
    )
    return PersistenceSettings(
        snapshot_file=_resolve_path(base_dir, snapshot_file or DEFAULT_SNAPSHOT_FILE),
    )


def _parse_notification_settings(section: Mapping[str, Any]) -> NotificationSettings:
    volume = _as_float(section.get("volume", 0.3), "notifications.volume")
    if not 0.0 <= volume <= 1.0:
        raise AppConfigurationError("notifications.volume must be in [0, 1].")
    return NotificationSettings(
        desktop_enabled=_as_bool(
            section.get("desktop_enabled", True),
            "notifications.desktop_enabled",
        ),
        output_device=(
            _as_int(section.get("output_device"), "notifications.output_device")
            if "output_device" in section
            else None
        ),
        volume=volume,
    )


def _parse_ui_server_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> UIServerSettings:
    index_file = _as_str(section.get("index_file", ""), "ui_server.index_file")
    return UIServerSettings(
        enabled=_as_bool(section.get("enabled", True), "ui_server.enabled"),
        host=_as_str(section.get("host", "127.0.0.1"), "ui_server.host"),
        port=_as_int(section.get("port", 8765), "ui_server.port"),
        index_file=_resolve_path(base_dir, index_file) if index_file else "",
    )


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _required_str(section: Mapping[str, Any], field: str, section_name: str) -> str:
    value = section.get(field)
    text = _as_str(value, f"{section_name}.{field}")
    if not text:
        raise AppConfigurationError(f"{section_name}.{field} is required.")
    return text


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        base = 16 if text.startswith("0x") else 10
        try:
            return int(text, base)
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be a float.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be a float.") from error
    raise AppConfigurationError(f"{field} must be a float.")


def _as_positive_int(value: Any, field: str) -> int:
    number = _as_int(value, field)
    if number < 1:
        raise AppConfigurationError(f"{field} must be >= 1.")
    return number


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)


def _forbid_secret_fields(
    section: Mapping[str, Any],
    section_name: str,
    fields: tuple[str, ...],
) -> None:
    present = [field for field in fields if field in section]
    if present:
        joined = ", ".join(f"{section_name}.{field}" for field in present)
        raise AppConfigurationError(
            f"Secret values must not be stored in config.toml: {joined}. "
            "Move them to environment variables."
        )
