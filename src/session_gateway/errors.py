from __future__ import annotations


class GatewayError(Exception):
    """Base exception for focus session gateway failures."""


class GatewayConfigurationError(GatewayError):
    """Raised when session gateway configuration is invalid."""


class GatewayUnreachable(GatewayError):
    """Raised when the session server cannot be reached or answers unusably."""


class GatewayRejected(GatewayError):
    """Raised when the session server refuses the request (e.g. a session is active)."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
