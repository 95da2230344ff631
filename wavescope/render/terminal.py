"""Rich-backed terminal surface: the only module that writes to the screen.

The surface owns a full-screen :class:`rich.live.Live` display, turns
:class:`~wavescope.render.grid.CellGrid` rows into styled
:class:`rich.text.Text` runs and lays the three panes out vertically
(30% transcript, 35% waveform, 35% spectrogram).
"""

from __future__ import annotations

import logging
from logging.handlers import MemoryHandler
from types import TracebackType

from rich.console import Console
from rich.errors import LiveError
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.style import Style
from rich.text import Text

from wavescope.errors import TerminalIOError
from wavescope.render.compositor import PaneSize, PaneSizes, RenderedFrame
from wavescope.render.grid import CellGrid

logger = logging.getLogger(__name__)

__all__ = ["TerminalSurface", "grid_to_text", "layout_sizes"]

_PANE_SHARES = (0.30, 0.35, 0.35)
_BORDER = 2
# Buffered log records while the screen is taken over
_PARKED_CAPACITY = 10_000


class _ParkingHandler(MemoryHandler):
    """MemoryHandler without a target that keeps only the newest records."""

    def __init__(self, capacity: int) -> None:
        super().__init__(capacity, flushLevel=logging.CRITICAL + 1)
        self.dropped = 0

    def flush(self) -> None:
        self.acquire()
        try:
            overflow = len(self.buffer) - self.capacity
            if overflow > 0:
                del self.buffer[:overflow]
                self.dropped += overflow
        finally:
            self.release()


def grid_to_text(grid: CellGrid) -> Text:
    """Convert a grid to a Text, merging runs of identically styled cells."""
    text = Text(no_wrap=True, overflow="crop")
    for y, row in enumerate(grid.rows()):
        if y:
            text.append("\n")
        run: list[str] = []
        key = None
        for cell in row:
            if cell.style_key != key and run:
                text.append("".join(run), style=_style(key))
                run = []
            key = cell.style_key
            run.append(cell.char)
        if run:
            text.append("".join(run), style=_style(key))
    return text


def _style(key: tuple | None) -> Style | None:
    if key is None:
        return None
    fg, bg, bold, reverse, dim = key
    if fg is None and bg is None and not (bold or reverse or dim):
        return None
    return Style(color=fg, bgcolor=bg, bold=bold, reverse=reverse, dim=dim)


def layout_sizes(width: int, height: int) -> tuple[int, PaneSizes]:
    """Split the terminal into a header line and three bordered panes.

    Returns:
        ``(header_height, sizes)`` where ``sizes`` are the panes' inner
        (border-excluded) dimensions.
    """
    header = 1
    body = max(height - header, 3 * _BORDER)
    transcript_h = int(body * _PANE_SHARES[0])
    waveform_h = int(body * _PANE_SHARES[1])
    spectrogram_h = body - transcript_h - waveform_h
    inner_w = max(width - _BORDER, 0)
    return header, PaneSizes(
        transcript=PaneSize(inner_w, max(transcript_h - _BORDER, 0)),
        waveform=PaneSize(inner_w, max(waveform_h - _BORDER, 0)),
        spectrogram=PaneSize(inner_w, max(spectrogram_h - _BORDER, 0)),
    )


class TerminalSurface:
    """Context manager around a full-screen Live display.

    While active, root stream handlers are detached and their records parked
    in a :class:`~logging.handlers.MemoryHandler`; they are replayed to the
    original handlers once the terminal is restored.
    """

    def __init__(self, console: Console | None = None, title: str = "wavescope") -> None:
        self.console = console or Console()
        self.title = title
        self._live: Live | None = None
        self._parked_handlers: list[logging.Handler] = []
        self._memory: _ParkingHandler | None = None

    def __enter__(self) -> TerminalSurface:
        if not self.console.is_terminal:
            raise TerminalIOError("stdout is not an interactive terminal")
        self._park_logging()
        self._live = Live(
            console=self.console,
            screen=True,
            auto_refresh=False,
            redirect_stdout=False,
            redirect_stderr=False,
        )
        try:
            self._live.start()
        except (LiveError, OSError) as exc:
            self._live = None
            self._restore_logging()
            raise TerminalIOError(f"cannot start the terminal display: {exc}") from exc
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None
        self._restore_logging()

    def _park_logging(self) -> None:
        root = logging.getLogger()
        self._parked_handlers = [
            h
            for h in root.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        for handler in self._parked_handlers:
            root.removeHandler(handler)
        self._memory = _ParkingHandler(_PARKED_CAPACITY)
        root.addHandler(self._memory)

    def _restore_logging(self) -> None:
        root = logging.getLogger()
        dropped = 0
        if self._memory is not None:
            root.removeHandler(self._memory)
        for handler in self._parked_handlers:
            root.addHandler(handler)
        if self._memory is not None:
            for record in self._memory.buffer:
                for handler in self._parked_handlers:
                    if record.levelno >= handler.level:
                        handler.handle(record)
            dropped = self._memory.dropped
            self._memory.buffer.clear()
            self._memory.close()
            self._memory = None
        self._parked_handlers = []
        if dropped:
            logger.warning(f"{dropped} older log record(s) were dropped while the display was live")

    def pane_sizes(self) -> PaneSizes:
        """Inner pane dimensions for the current terminal size."""
        width, height = self.console.size
        return layout_sizes(width, height)[1]

    def draw(self, frame: RenderedFrame, status: str = "") -> None:
        """Show a rendered frame.

        Raises:
            TerminalIOError: If the surface is not active or the write fails.
        """
        if self._live is None:
            raise TerminalIOError("terminal surface is not active")
        width, height = self.console.size
        header_h, sizes = layout_sizes(width, height)

        layout = Layout()
        layout.split_column(
            Layout(Text(f" {self.title}  {status}", style="bold", no_wrap=True), size=header_h),
            Layout(
                Panel(grid_to_text(frame.transcript), title="Transcript", title_align="left"),
                size=sizes.transcript.height + _BORDER,
            ),
            Layout(
                Panel(grid_to_text(frame.waveform), title="Waveform", title_align="left"),
                size=sizes.waveform.height + _BORDER,
            ),
            Layout(
                Panel(grid_to_text(frame.spectrogram), title="Spectrogram", title_align="left"),
                size=sizes.spectrogram.height + _BORDER,
            ),
        )
        try:
            self._live.update(layout, refresh=True)
        except OSError as exc:
            raise TerminalIOError(f"terminal write failed: {exc}") from exc
