"""Fixed-rate render loop tying the clock, the compositor and the terminal together.

Each iteration renders the current clock reading, then blocks on the key
queue until the next frame is due. Quit keys, a set cancel event or an input
channel failure end the loop at an iteration boundary.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from typing import Protocol

from wavescope.app.keyboard import KeyEvent, KeyReader
from wavescope.app.session import AnalysisSession
from wavescope.config import DisplayConfig
from wavescope.errors import InputChannelError, WavescopeError
from wavescope.playback.clock import ClockState, PlaybackClock
from wavescope.render.compositor import PaneSizes, RenderCompositor, RenderedFrame, format_time
from wavescope.render.terminal import TerminalSurface
from wavescope.utils.cancel import (
    cancel_on_signals,
    get_cancel_event,
    is_cancelled,
    reset_cancel_event,
)

logger = logging.getLogger(__name__)

__all__ = ["EventLoop", "Surface", "run_viewer"]

QUIT_KEYS = frozenset({"q", "Q", "esc"})
KEY_HINTS = "[space] play/pause  [←/→] seek  [home] restart  [q] quit"


class Surface(Protocol):
    """What the loop needs from a drawing backend."""

    def pane_sizes(self) -> PaneSizes: ...

    def draw(self, frame: RenderedFrame, status: str = "") -> None: ...


class EventLoop:
    """Owns the playback clock and drives redraws at ``display.fps``.

    Args:
        clock: Playback clock; only this loop mutates it.
        compositor: Builds frames from the precomputed analysis.
        surface: Drawing backend.
        keys: Single-producer queue of key events.
        display: Viewer settings (frame rate, seek step).
        cancel_event: Set externally (signals) to stop the loop.
        now: Monotonic time source.
    """

    def __init__(
        self,
        clock: PlaybackClock,
        compositor: RenderCompositor,
        surface: Surface,
        keys: queue.Queue[KeyEvent],
        display: DisplayConfig | None = None,
        cancel_event: threading.Event | None = None,
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        self.clock = clock
        self.compositor = compositor
        self.surface = surface
        self.keys = keys
        self.display = display or compositor.display
        self.cancel_event = cancel_event or threading.Event()
        self._now = now
        self.frames_drawn = 0
        self.render_failures = 0

    def status_line(self, position: float) -> str:
        state = {
            ClockState.RUNNING: "▶",
            ClockState.PAUSED: "⏸",
            ClockState.STOPPED: "■",
        }[self.clock.state]
        return f"{state} {format_time(position)} / {format_time(self.clock.duration)}   {KEY_HINTS}"

    def handle_key(self, key: str) -> bool:
        """Apply one key press.

        Returns:
            ``False`` when the key asks to quit.
        """
        if key in QUIT_KEYS:
            return False
        if key == "space":
            if self.clock.finished and not self.clock.running:
                self.clock.seek(0.0)
            self.clock.toggle()
        elif key in ("left", "h"):
            self.clock.nudge(-self.display.seek_step_sec)
        elif key in ("right", "l"):
            self.clock.nudge(self.display.seek_step_sec)
        elif key in ("home", "0"):
            self.clock.seek(0.0)
        elif key == "end":
            self.clock.seek(self.clock.duration)
        else:
            logger.debug(f"Unbound key {key!r}")
        return True

    def tick(self) -> None:
        """Render and draw the frame for the current clock reading.

        A failing render keeps the previous frame on screen; failures are
        logged and counted, never raised.
        """
        if self.clock.running and self.clock.finished:
            self.clock.pause()
        position = self.clock.read()
        try:
            frame = self.compositor.render(position, self.surface.pane_sizes())
        except Exception:  # noqa: BLE001 - one bad frame must not end the session
            self.render_failures += 1
            logger.exception(f"Rendering failed at t={position:.3f}s; keeping previous frame")
            frame = self.compositor.last_frame
            if frame is None:
                return
        try:
            self.surface.draw(frame, status=self.status_line(position))
        except WavescopeError:
            self.render_failures += 1
            logger.exception("Drawing failed; will retry on the next frame")
            return
        self.frames_drawn += 1

    def _drain_keys(self, timeout: float) -> bool:
        """Wait up to ``timeout`` for input and apply every queued key.

        Returns:
            ``False`` when the loop should stop.

        Raises:
            InputChannelError: If the reader reported a failure.
        """
        try:
            event = self.keys.get(timeout=max(timeout, 0.0))
        except queue.Empty:
            return True
        while True:
            if isinstance(event, InputChannelError):
                raise event
            if not self.handle_key(event):
                return False
            try:
                event = self.keys.get_nowait()
            except queue.Empty:
                return True

    def run(self) -> None:
        """Start the clock and loop until quit.

        Raises:
            InputChannelError: If key input fails; the loop stops first.
        """
        interval = self.display.frame_interval
        self.clock.start()
        next_tick = self._now()
        while not is_cancelled(self.cancel_event):
            self.tick()
            next_tick += interval
            now = self._now()
            if next_tick < now:
                # Fell behind (slow terminal); do not try to catch up.
                next_tick = now
            if not self._drain_keys(next_tick - now):
                logger.info("Quit requested")
                break
        logger.debug(f"Loop finished after {self.frames_drawn} frame(s)")


def run_viewer(session: AnalysisSession, display: DisplayConfig) -> None:
    """Take over the terminal and run the interactive viewer until quit.

    Raises:
        TerminalIOError: If the terminal cannot be used.
        InputChannelError: If key input fails while running.
    """
    keys: queue.Queue[KeyEvent] = queue.Queue()
    compositor = RenderCompositor(session.buffer, session.spectrogram, session.transcript, display)
    clock = PlaybackClock(session.buffer.duration)
    reset_cancel_event()
    with (
        cancel_on_signals(get_cancel_event()) as cancel_event,
        KeyReader(keys),
        TerminalSurface(title=f"wavescope · {session.source.name}") as surface,
    ):
        EventLoop(clock, compositor, surface, keys, display, cancel_event).run()
