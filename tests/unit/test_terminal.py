"""Unit tests for the rich terminal surface helpers."""

import io
import logging

import pytest
from rich.console import Console

from wavescope.errors import TerminalIOError
from wavescope.render import terminal
from wavescope.render.compositor import PaneSize
from wavescope.render.grid import Cell, CellGrid
from wavescope.render.terminal import TerminalSurface, grid_to_text, layout_sizes


def test_grid_to_text_merges_style_runs() -> None:
    grid = CellGrid(4, 2)
    grid.put_text(0, 0, "ab", fg="red")
    grid.put(3, 0, Cell("c", bold=True))
    grid.put_text(0, 1, "xyz")

    text = grid_to_text(grid)

    assert text.plain == "ab c\nxyz "
    # One span for the red run, one for the bold cell; default cells carry none.
    assert len(text.spans) == 2


def test_layout_sizes_split() -> None:
    header, sizes = layout_sizes(100, 41)
    assert header == 1
    assert sizes.transcript == PaneSize(98, 10)
    assert sizes.waveform.width == sizes.spectrogram.width == 98
    # Three bordered panes fill the 40 rows under the header.
    assert sum(size.height + 2 for size in sizes) == 40
    assert sizes.spectrogram.height >= sizes.waveform.height > sizes.transcript.height


def test_layout_sizes_tiny_terminal() -> None:
    _header, sizes = layout_sizes(1, 1)
    assert all(size.width >= 0 and size.height >= 0 for size in sizes)


def test_surface_requires_terminal() -> None:
    console = Console(file=io.StringIO(), force_terminal=False)
    with pytest.raises(TerminalIOError):
        with TerminalSurface(console=console):
            pass


def test_logging_is_parked_and_replayed() -> None:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    root = logging.getLogger()
    root.addHandler(handler)
    old_level = root.level
    root.setLevel(logging.INFO)
    surface = TerminalSurface(console=Console(file=io.StringIO(), force_terminal=True))
    try:
        surface._park_logging()
        assert handler not in root.handlers
        logging.getLogger("wavescope.test").info("while the screen is taken")
        assert stream.getvalue() == ""
        surface._restore_logging()
        assert handler in root.handlers
        assert "while the screen is taken" in stream.getvalue()
    finally:
        root.removeHandler(handler)
        root.setLevel(old_level)


def test_draw_requires_active_surface(short_buffer) -> None:
    from wavescope.analysis.spectrogram import compute
    from wavescope.render.compositor import RenderCompositor
    from wavescope.transcript.index import TranscriptIndex

    compositor = RenderCompositor(
        short_buffer, compute(short_buffer, window_size=256), TranscriptIndex.build([])
    )
    _header, sizes = layout_sizes(80, 24)
    frame = compositor.render(0.0, sizes)
    surface = TerminalSurface(console=Console(file=io.StringIO(), force_terminal=True))
    with pytest.raises(TerminalIOError):
        surface.draw(frame)


def test_parked_logging_keeps_newest_records(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(terminal, "_PARKED_CAPACITY", 50)
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    root = logging.getLogger()
    root.addHandler(handler)
    old_level = root.level
    root.setLevel(logging.INFO)
    surface = TerminalSurface(console=Console(file=io.StringIO(), force_terminal=True))
    log = logging.getLogger("wavescope.test")
    try:
        surface._park_logging()
        for i in range(50 + 30):
            log.error(f"render failed #{i}")
        assert len(surface._memory.buffer) == 50
        assert surface._memory.dropped == 30
        surface._restore_logging()
    finally:
        root.removeHandler(handler)
        root.setLevel(old_level)

    replayed = stream.getvalue()
    assert "render failed #29\n" not in replayed
    assert "render failed #30\n" in replayed
    assert "render failed #79\n" in replayed
    assert "30 older log record(s) were dropped" in replayed
