from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from .errors import GatewayConfigurationError


@dataclass(frozen=True)
class SessionGatewayConfig:
    base_url: str
    timeout_seconds: float = 10.0
    api_token: Optional[str] = None

    def __post_init__(self) -> None:
        parts = urlsplit(self.base_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise GatewayConfigurationError(
                f"session_gateway.base_url must be an http(s) URL, got: {self.base_url!r}"
            )
        if self.timeout_seconds <= 0:
            raise GatewayConfigurationError(
                f"session_gateway.timeout_seconds must be > 0, got: {self.timeout_seconds}"
            )

    @classmethod
    def from_settings(
        cls,
        settings,
        *,
        api_token: str | None = None,
    ) -> "SessionGatewayConfig":
        return cls(
            base_url=str(settings.base_url).rstrip("/"),
            timeout_seconds=float(settings.timeout_seconds),
            api_token=api_token or None,
        )
