"""Websocket UI bridge for the focus engine."""

from .config import ServerConfigurationError, UIServerConfig
from .service import CommandHandler, UIServer

__all__ = [
    "CommandHandler",
    "ServerConfigurationError",
    "UIServerConfig",
    "UIServer",
]
