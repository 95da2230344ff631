"""Unit tests for signal-driven cancellation."""

import os
import signal
import threading

from wavescope.utils import cancel


def test_signal_sets_event_and_handlers_are_restored() -> None:
    before = signal.getsignal(signal.SIGTERM)
    event = threading.Event()

    with cancel.cancel_on_signals(event) as active:
        assert active is event
        os.kill(os.getpid(), signal.SIGTERM)
        assert event.wait(timeout=1.0)

    assert signal.getsignal(signal.SIGTERM) is before


def test_global_event_reset() -> None:
    event = cancel.get_cancel_event()
    assert cancel.get_cancel_event() is event
    event.set()
    assert cancel.is_cancelled()
    cancel.reset_cancel_event()
    assert not cancel.is_cancelled()
    assert not cancel.is_cancelled(threading.Event())
