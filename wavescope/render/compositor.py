"""Turn the precomputed analysis and a playback time into three cell grids.

The compositor reads only immutable inputs: the sample buffer metadata, the
spectrogram, the transcript index and the display settings. Apart from a
per-width envelope cache and the last successfully rendered frame it keeps no
state, so ``render(t)`` is a pure function of ``t`` and the pane sizes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from wavescope.analysis.spectrogram import Spectrogram
from wavescope.analysis.waveform import WaveformColumn, extract, peak_amplitude
from wavescope.audio.buffer import SampleBuffer
from wavescope.config import DisplayConfig
from wavescope.render.colors import GRADIENT, color_indices
from wavescope.render.grid import Cell, CellGrid
from wavescope.transcript.index import TranscriptIndex

logger = logging.getLogger(__name__)

__all__ = ["PaneSize", "PaneSizes", "RenderedFrame", "RenderCompositor", "format_time"]

WAVE_PLAYED = "bright_cyan"
WAVE_UPCOMING = "blue"
CURSOR = "bright_red"
AXIS = "grey62"
WORD_PAST = "grey50"
WORD_UPCOMING = "white"

# Display headroom applied by auto-gain
_AUTO_GAIN_TARGET = 0.95
# Lowest frequency of the log axis
_LOG_MIN_HZ = 20.0
_FREQ_GUTTER = 6
_TIME_TICKS = 5


class PaneSize(NamedTuple):
    width: int
    height: int


class PaneSizes(NamedTuple):
    transcript: PaneSize
    waveform: PaneSize
    spectrogram: PaneSize


@dataclass(frozen=True)
class RenderedFrame:
    """Grids for one redraw plus the clock reading they were built for."""

    transcript: CellGrid
    waveform: CellGrid
    spectrogram: CellGrid
    position: float
    duration: float


def format_time(seconds: float) -> str:
    """``mm:ss.ss`` label used by the transcript and the header."""
    seconds = max(seconds, 0.0)
    minutes, rest = divmod(seconds, 60.0)
    return f"{int(minutes):02d}:{rest:05.2f}"


def _format_hz(freq: float) -> str:
    return f"{freq / 1000:.1f}k" if freq >= 1000 else f"{freq:.0f}"


class RenderCompositor:
    """Builds the transcript, waveform and spectrogram panes for a time ``t``."""

    def __init__(
        self,
        buffer: SampleBuffer,
        spectrogram: Spectrogram,
        transcript: TranscriptIndex,
        display: DisplayConfig | None = None,
    ) -> None:
        self.buffer = buffer
        self.spectrogram = spectrogram
        self.transcript = transcript
        self.display = display or DisplayConfig()
        self.duration = buffer.duration
        self.last_frame: RenderedFrame | None = None
        self._envelope_width = -1
        self._envelope: list[WaveformColumn] = []
        self._gain = 1.0

    # ── Public API ──────────────────────────────────────────────────────────

    def render(self, t: float, sizes: PaneSizes) -> RenderedFrame:
        """Render all three panes for playback position ``t``."""
        t = min(max(t, 0.0), self.duration)
        frame = RenderedFrame(
            transcript=self.render_transcript(t, sizes.transcript),
            waveform=self.render_waveform(t, sizes.waveform),
            spectrogram=self.render_spectrogram(t, sizes.spectrogram),
            position=t,
            duration=self.duration,
        )
        self.last_frame = frame
        return frame

    def time_to_column(self, t: float, width: int) -> int:
        """Column of a ``width``-wide full-file view that contains ``t``."""
        if width <= 0 or self.duration <= 0:
            return 0
        return min(int(t / self.duration * width), width - 1)

    # ── Transcript ──────────────────────────────────────────────────────────

    def render_transcript(self, t: float, size: PaneSize) -> CellGrid:
        grid = CellGrid(*size)
        if grid.height == 0:
            return grid
        if len(self.transcript) == 0:
            grid.put_text(0, 0, "(no transcript)", fg=AXIS, dim=True)
            return grid

        words = self.transcript.words_in_range(
            t - self.display.lookback_sec, t + self.display.lookahead_sec
        )
        if not words:
            grid.put_text(0, 0, "…", fg=AXIS)
            return grid

        active = self.transcript.active_word(t)
        # In a gap, the most recent word that already started keeps the focus.
        recent = None
        if active is None:
            last = self.transcript.last_started_index(t)
            recent = None if last is None else self.transcript[last]
        focus = active if active is not None else recent
        anchor = next((i for i, word in enumerate(words) if word is focus), 0)

        anchor_row = grid.height // 3
        top = min(max(anchor - anchor_row, 0), max(len(words) - grid.height, 0))
        for row, word in enumerate(words[top : top + grid.height]):
            label = f"[{format_time(word.start)}] "
            grid.put_text(0, row, label, fg=AXIS)
            text = word.text
            room = grid.width - len(label)
            if len(text) > room > 0:
                text = text[: room - 1] + "…"
            if word is active:
                style = {"bold": True, "reverse": True}
            elif word is recent:
                style = {"fg": WORD_PAST, "bold": True}
            elif word.end <= t:
                style = {"fg": WORD_PAST}
            else:
                style = {"fg": WORD_UPCOMING}
            grid.put_text(len(label), row, text, **style)
        return grid

    # ── Waveform ────────────────────────────────────────────────────────────

    def _envelope_for(self, width: int) -> list[WaveformColumn]:
        if width != self._envelope_width:
            self._envelope = extract(self.buffer, width)
            self._envelope_width = width
            peak = peak_amplitude(self._envelope)
            self._gain = (
                _AUTO_GAIN_TARGET / peak if self.display.auto_gain and peak > 0 else 1.0
            )
        return self._envelope

    def _time_axis(self, grid: CellGrid, y: int, duration: float, width: int) -> None:
        for i in range(_TIME_TICKS + 1):
            label = f"{duration * i / _TIME_TICKS:.1f}s"
            x = int(round(i * (width - 1) / _TIME_TICKS))
            if i == _TIME_TICKS:
                x = width - len(label)
            elif i > 0:
                x -= len(label) // 2
            grid.put_text(max(x, 0), y, label, fg=AXIS)

    def render_waveform(self, t: float, size: PaneSize) -> CellGrid:
        grid = CellGrid(*size)
        if grid.width == 0 or grid.height == 0:
            return grid
        has_axis = grid.height >= 3
        plot_h = grid.height - 1 if has_axis else grid.height
        columns = self._envelope_for(grid.width)
        cursor = self.time_to_column(t, grid.width)

        def row_of(amplitude: float) -> int:
            a = min(max(amplitude * self._gain, -1.0), 1.0)
            return int(round((1.0 - (a + 1.0) / 2.0) * (plot_h - 1)))

        for x, column in enumerate(columns):
            top, bottom = row_of(column.max), row_of(column.min)
            color = CURSOR if x == cursor else WAVE_PLAYED if x < cursor else WAVE_UPCOMING
            for y in range(top, bottom + 1):
                grid.put(x, y, Cell("█", fg=color))
        for y in range(plot_h):
            if grid.get(cursor, y).char == " ":
                grid.put(cursor, y, Cell("│", fg=CURSOR))
        if has_axis:
            self._time_axis(grid, grid.height - 1, self.duration, grid.width)
        return grid

    # ── Spectrogram ─────────────────────────────────────────────────────────

    def _column_spans(self, t: float, width: int) -> list[tuple[float, float]]:
        """Time span of each spectrogram column for the configured scroll mode."""
        if self.display.scroll_mode == "overview":
            step = self.duration / width if width else 0.0
            return [(c * step, (c + 1) * step) for c in range(width)]
        spc = self.display.seconds_per_column
        # Right-most column ends at t.
        return [(t - (width - c) * spc, t - (width - 1 - c) * spc) for c in range(width)]

    def _row_bin_starts(self, n_rows: int) -> tuple[np.ndarray, int, np.ndarray]:
        """First FFT bin of each sub-row (bottom first), bin limit and row centre Hz."""
        sgram = self.spectrogram
        nyquist = sgram.sample_rate / 2.0
        f_max = min(self.display.max_frequency or nyquist, nyquist)
        bin_hz = sgram.sample_rate / sgram.window_size
        if self.display.log_frequency:
            f_min = max(_LOG_MIN_HZ, bin_hz)
            f_min = min(f_min, f_max / 2.0)
            edges = np.geomspace(f_min, f_max, n_rows + 1)
        else:
            edges = np.linspace(0.0, f_max, n_rows + 1)
        limit = min(int(math.ceil(f_max / bin_hz)) + 1, sgram.bin_count)
        starts = np.clip(np.floor(edges[:-1] / bin_hz).astype(np.intp), 0, limit - 1)
        centres = (edges[:-1] + edges[1:]) / 2.0
        return starts, limit, centres

    def _column_magnitudes(self, spans: list[tuple[float, float]]) -> np.ndarray:
        """Max-pooled magnitudes per column; ``NaN`` rows where no frame applies."""
        sgram = self.spectrogram
        out = np.full((len(spans), sgram.bin_count), np.nan, dtype=np.float32)
        last_time = float(sgram.timestamps[-1]) + sgram.frame_duration
        for c, (t0, t1) in enumerate(spans):
            if t1 <= 0.0 or t0 >= last_time:
                continue
            lo, hi = sgram.index_range(max(t0, 0.0), t1)
            if hi > lo:
                out[c] = sgram.magnitudes[lo:hi].max(axis=0)
            else:
                idx = sgram.frame_index_at(t1)
                if idx >= 0:
                    out[c] = sgram.magnitudes[idx]
        return out

    def render_spectrogram(self, t: float, size: PaneSize) -> CellGrid:
        grid = CellGrid(*size)
        if grid.width == 0 or grid.height == 0:
            return grid
        sgram = self.spectrogram
        if len(sgram) == 0:
            grid.put_text(0, 0, "(audio too short for spectrogram)", fg=AXIS, dim=True)
            return grid

        gutter = _FREQ_GUTTER if grid.width > 4 * _FREQ_GUTTER else 0
        plot_w = grid.width - gutter
        n_rows = grid.height * 2  # two sub-rows per cell via "▀"
        starts, limit, centres = self._row_bin_starts(n_rows)

        mags = self._column_magnitudes(self._column_spans(t, plot_w))
        missing = np.isnan(mags[:, 0])
        pooled = np.maximum.reduceat(np.nan_to_num(mags[:, :limit], nan=sgram.floor_db), starts, axis=1)
        colors = color_indices(pooled, sgram.floor_db, sgram.ceiling_db)

        cursor = self.time_to_column(t, plot_w) if self.display.scroll_mode == "overview" else -1
        for y in range(grid.height):
            upper = n_rows - 1 - 2 * y
            lower = upper - 1
            for c in range(plot_w):
                if missing[c]:
                    continue
                grid.put(
                    gutter + c,
                    y,
                    Cell("▀", fg=GRADIENT[colors[c, upper]], bg=GRADIENT[colors[c, lower]]),
                )
        if cursor >= 0:
            for y in range(grid.height):
                bg = grid.get(gutter + cursor, y).bg
                grid.put(gutter + cursor, y, Cell("│", fg=CURSOR, bg=bg))

        if gutter:
            label_rows = range(0, grid.height, max(grid.height // 4, 1))
            for y in label_rows:
                label = _format_hz(float(centres[n_rows - 1 - 2 * y]))
                grid.put_text(0, y, label.rjust(gutter - 1)[: gutter - 1], fg=AXIS)
        return grid
