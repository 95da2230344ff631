"""Virtual playback clock driving the render loop.

The position is derived from the wall clock at read time,
``anchor_position + (now - anchor_instant)``, and re-anchored on every state
transition. It is never accumulated per tick, so the reading does not drift
with the frame rate or with how often it is polled.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable

from wavescope.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

__all__ = ["ClockState", "PlaybackClock"]


class ClockState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class PlaybackClock:
    """Monotonic, pausable, seekable position in ``[0, duration]``.

    Args:
        duration: Length of the timeline in seconds.
        now: Monotonic time source; injectable for tests.
    """

    def __init__(self, duration: float, now: Callable[[], float] = time.monotonic) -> None:
        if duration < 0:
            raise InvalidConfiguration(f"duration must be >= 0, got {duration}")
        self._duration = float(duration)
        self._now = now
        self._state = ClockState.STOPPED
        self._anchor_position = 0.0
        self._anchor_instant = now()

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is ClockState.RUNNING

    @property
    def finished(self) -> bool:
        """``True`` once the position has reached the end of the timeline."""
        return self.read() >= self._duration

    def _clamp(self, t: float) -> float:
        return min(max(t, 0.0), self._duration)

    def _anchor(self, position: float) -> None:
        self._anchor_position = self._clamp(position)
        self._anchor_instant = self._now()

    def read(self) -> float:
        """Current position in seconds."""
        if self._state is ClockState.RUNNING:
            elapsed = self._now() - self._anchor_instant
            return self._clamp(self._anchor_position + elapsed)
        return self._anchor_position

    def start(self, at: float | None = None) -> None:
        """Run from ``at``, or from the current (initially zero or seeked) position."""
        if self._state is ClockState.RUNNING:
            logger.debug("start() ignored: clock already running")
            return
        position = self._anchor_position if at is None else at
        self._state = ClockState.RUNNING
        self._anchor(position)

    def pause(self) -> None:
        """Freeze the position at its current value."""
        if self._state is not ClockState.RUNNING:
            logger.debug(f"pause() ignored in state {self._state.value}")
            return
        frozen = self.read()
        self._state = ClockState.PAUSED
        self._anchor(frozen)

    def resume(self) -> None:
        """Continue from the frozen position."""
        if self._state is not ClockState.PAUSED:
            logger.debug(f"resume() ignored in state {self._state.value}")
            return
        self._state = ClockState.RUNNING
        self._anchor(self._anchor_position)

    def toggle(self) -> None:
        """Space-bar behaviour: start, pause or resume depending on state."""
        if self._state is ClockState.RUNNING:
            self.pause()
        elif self._state is ClockState.PAUSED:
            self.resume()
        else:
            self.start()

    def seek(self, t: float) -> None:
        """Jump to ``t`` (clamped) without changing the running state."""
        self._anchor(t)

    def nudge(self, delta: float) -> None:
        """Seek relative to the current position."""
        self.seek(self.read() + delta)
