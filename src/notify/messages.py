"""Titles and bodies shown when a phase completes."""

from __future__ import annotations

from focus.constants import PHASE_FOCUS

FOCUS_COMPLETE_TITLE = "Focus complete"
FOCUS_COMPLETE_BODY = "Great work! Time for a break."
BREAK_OVER_TITLE = "Break over"
BREAK_OVER_BODY = "Ready to focus again?"


def phase_complete_message(phase: str) -> tuple[str, str]:
    if phase == PHASE_FOCUS:
        return FOCUS_COMPLETE_TITLE, FOCUS_COMPLETE_BODY
    return BREAK_OVER_TITLE, BREAK_OVER_BODY
