"""Cooperative cancellation for the interactive session.

SIGINT and SIGTERM set a shared quit event instead of raising
``KeyboardInterrupt``, so the render loop can finish its current frame and
restore the terminal before the process exits.
"""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

_HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)

_quit_event = threading.Event()


def get_cancel_event() -> threading.Event:
    """Process-wide quit event watched by the render loop."""
    return _quit_event


def reset_cancel_event() -> None:
    """Clear the quit event before a new viewer session starts."""
    _quit_event.clear()


def is_cancelled(event: threading.Event | None = None) -> bool:
    """Whether ``event`` (default: the process-wide one) has been set."""
    return (event or _quit_event).is_set()


@contextmanager
def cancel_on_signals(event: threading.Event | None = None) -> Iterator[threading.Event]:
    """Route SIGINT/SIGTERM to ``event`` for the duration of the block.

    The previously installed handlers are restored on exit, including when
    the block raises. Must be entered from the main thread.

    Args:
        event: Event to set on signal; the process-wide one if None.

    Yields:
        The event that signals will set.
    """
    target = event if event is not None else _quit_event

    def _on_signal(signum: int, _frame: object) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, stopping the viewer")
        target.set()

    previous = {sig: signal.signal(sig, _on_signal) for sig in _HANDLED_SIGNALS}
    try:
        yield target
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
