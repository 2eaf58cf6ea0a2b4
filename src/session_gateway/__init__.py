"""Remote session authority client and error types."""

from .errors import (
    GatewayConfigurationError,
    GatewayError,
    GatewayRejected,
    GatewayUnreachable,
)
from .config import SessionGatewayConfig
from .http_client import HttpSessionGateway

__all__ = [
    "GatewayConfigurationError",
    "GatewayError",
    "GatewayRejected",
    "GatewayUnreachable",
    "HttpSessionGateway",
    "SessionGatewayConfig",
]
