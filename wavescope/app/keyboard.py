"""Key-press reader for the interactive loop.

A daemon thread puts stdin into cbreak mode, polls it with ``select`` and
pushes decoded key names into a queue. It is the only producer on that
queue; a read failure is delivered as an :class:`InputChannelError` item so
the loop can stop on its next iteration.
"""

from __future__ import annotations

import codecs
import logging
import os
import queue
import select
import sys
import termios
import threading
import tty
from typing import TextIO

from wavescope.errors import InputChannelError, TerminalIOError

logger = logging.getLogger(__name__)

__all__ = ["KeyReader", "KeyEvent", "parse_keys", "split_keys"]

KeyEvent = str | InputChannelError

_ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1bOH": "home",
    "\x1bOF": "end",
}
# Incomplete forms of the sequences above, held back until more input arrives.
_SEQUENCE_PREFIXES = frozenset(seq[:n] for seq in _ESCAPE_SEQUENCES for n in range(1, len(seq)))
_LONGEST_SEQUENCE = max(map(len, _ESCAPE_SEQUENCES))


def parse_keys(data: str) -> list[str]:
    """Split raw terminal input into key names.

    Arrow/Home/End escape sequences become ``"left"``, ``"home"``...; a lone
    escape is ``"esc"``, a space is ``"space"`` and any other character is
    returned as-is.
    """
    keys: list[str] = []
    i = 0
    while i < len(data):
        if data[i] == "\x1b":
            for seq, name in _ESCAPE_SEQUENCES.items():
                if data.startswith(seq, i):
                    keys.append(name)
                    i += len(seq)
                    break
            else:
                keys.append("esc")
                i += 1
            continue
        keys.append("space" if data[i] == " " else data[i])
        i += 1
    return keys


def split_keys(data: str) -> tuple[list[str], str]:
    """Parse ``data`` but keep a trailing partial escape sequence.

    Returns:
        ``(keys, pending)`` where ``pending`` must be prepended to the next
        read. A pending sequence that is never completed is a bare Esc.
    """
    for cut in range(max(len(data) - _LONGEST_SEQUENCE + 1, 0), len(data)):
        if data[cut:] in _SEQUENCE_PREFIXES:
            return parse_keys(data[:cut]), data[cut:]
    return parse_keys(data), ""


class KeyReader:
    """Context manager running the stdin reader thread.

    Args:
        events: Queue receiving key names (or an error item).
        stream: Terminal input stream.
        poll_interval: ``select`` timeout so the thread notices ``stop``.
    """

    def __init__(
        self,
        events: queue.Queue[KeyEvent],
        stream: TextIO | None = None,
        poll_interval: float = 0.05,
    ) -> None:
        self.events = events
        self.stream = stream or sys.stdin
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._old_settings: list | None = None

    def __enter__(self) -> KeyReader:
        try:
            fd = self.stream.fileno()
            self._old_settings = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except (termios.error, OSError, ValueError) as exc:
            raise TerminalIOError(f"keyboard input unavailable: {exc}") from exc
        self._thread = threading.Thread(target=self._run, name="wavescope-keys", daemon=True)
        self._thread.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._old_settings is not None:
            try:
                termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self._old_settings)
            except (termios.error, OSError) as exc:
                logger.warning(f"Could not restore terminal settings: {exc}")
            self._old_settings = None

    def _emit(self, keys: list[str]) -> None:
        for key in keys:
            self.events.put(key)

    def _run(self) -> None:
        fd = self.stream.fileno()
        decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
        pending = ""
        while not self._stop.is_set():
            try:
                ready, _, _ = select.select([fd], [], [], self.poll_interval)
                if not ready:
                    if pending:
                        # Nothing completed the sequence within one poll.
                        self._emit(parse_keys(pending))
                        pending = ""
                    continue
                data = os.read(fd, 64)
            except (OSError, ValueError) as exc:
                self.events.put(InputChannelError(f"reading keys failed: {exc}"))
                return
            if not data:
                self._emit(parse_keys(pending + decoder.decode(b"", final=True)))
                self.events.put(InputChannelError("terminal input closed"))
                return
            keys, pending = split_keys(pending + decoder.decode(data))
            self._emit(keys)
