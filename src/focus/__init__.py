from .contracts import ActiveSession, SessionHandle
from .durations import DurationConfig, next_break_phase, resolve
from .engine import FocusEngine, FocusListener
from .scheduling import AsyncioIntervalScheduler
from .state import FocusActionResult, TimerState, TimerStateSnapshot

__all__ = [
    "ActiveSession",
    "AsyncioIntervalScheduler",
    "DurationConfig",
    "FocusActionResult",
    "FocusEngine",
    "FocusListener",
    "SessionHandle",
    "TimerState",
    "TimerStateSnapshot",
    "next_break_phase",
    "resolve",
]
