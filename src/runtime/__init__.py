"""Runtime engine exports."""

from .commands import FocusCommandDispatcher
from .loop import FocusRuntime, RuntimeBootstrap, RuntimeHooks

__all__ = [
    "FocusCommandDispatcher",
    "FocusRuntime",
    "RuntimeBootstrap",
    "RuntimeHooks",
]
