"""
Pomodoro-style focus timer.

A countdown that can be started, paused and reset, cycling between focus
sessions and breaks. Time comes from an injectable clock so the timer does
not depend on the UI refresh rate.
"""

import math
import time
from enum import Enum
from typing import Callable

from logger import setup_logger

logger = setup_logger(__name__)


class TimerPhase(str, Enum):
    FOCUS = "focus"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


DEFAULT_DURATIONS = {
    TimerPhase.FOCUS: 25 * 60,
    TimerPhase.SHORT_BREAK: 5 * 60,
    TimerPhase.LONG_BREAK: 15 * 60,
}

PHASE_LABELS = {
    TimerPhase.FOCUS: "Focus",
    TimerPhase.SHORT_BREAK: "Short break",
    TimerPhase.LONG_BREAK: "Long break",
}

SESSIONS_BEFORE_LONG_BREAK = 4


class FocusTimer:
    """Countdown over one phase at a time."""

    def __init__(
        self,
        durations: dict[TimerPhase, float] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.durations = {**DEFAULT_DURATIONS, **(durations or {})}
        self.clock = clock
        self.phase = TimerPhase.FOCUS
        self.completed_focus_sessions = 0
        self._remaining = float(self.durations[self.phase])
        self._started_at: float | None = None
        self._completion_signalled = False

    @property
    def duration(self) -> float:
        return float(self.durations[self.phase])

    @property
    def is_running(self) -> bool:
        return self._started_at is not None and self.remaining() > 0

    @property
    def is_finished(self) -> bool:
        return self.remaining() <= 0

    def remaining(self) -> float:
        if self._started_at is None:
            return self._remaining
        elapsed = self.clock() - self._started_at
        return max(0.0, self._remaining - elapsed)

    def start(self) -> None:
        if self.is_finished:
            # record a completion nobody polled before restarting
            self.poll()
            self.reset()
        if self._started_at is None:
            self._started_at = self.clock()
            logger.debug("Timer started, %s, %.0fs left", self.phase.value, self._remaining)

    def pause(self) -> None:
        if self._started_at is None:
            return
        self._remaining = self.remaining()
        self._started_at = None

    def reset(self, phase: TimerPhase | None = None) -> None:
        if phase is not None:
            self.phase = phase
        self._remaining = self.duration
        self._started_at = None
        self._completion_signalled = False

    def poll(self) -> bool:
        """Return True exactly once when the countdown reaches zero."""
        if self._completion_signalled or not self.is_finished:
            return False
        self._completion_signalled = True
        self._remaining = 0.0
        self._started_at = None
        if self.phase == TimerPhase.FOCUS:
            self.completed_focus_sessions += 1
        logger.info("%s phase finished", PHASE_LABELS[self.phase])
        return True

    def next_phase(self) -> TimerPhase:
        """Move to the phase after the current one and reset the countdown."""
        if self.phase != TimerPhase.FOCUS:
            upcoming = TimerPhase.FOCUS
        elif (
            self.completed_focus_sessions
            and self.completed_focus_sessions % SESSIONS_BEFORE_LONG_BREAK == 0
        ):
            upcoming = TimerPhase.LONG_BREAK
        else:
            upcoming = TimerPhase.SHORT_BREAK
        self.reset(upcoming)
        return upcoming

    def format_remaining(self) -> str:
        minutes, seconds = divmod(math.ceil(self.remaining()), 60)
        return f"{minutes:02d}:{seconds:02d}"
