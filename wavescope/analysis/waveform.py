"""Min/max waveform envelope.

The envelope keeps the extreme values of each display column rather than an
average, so percussive transients stay visible after heavy downsampling.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from wavescope.audio.buffer import SampleBuffer
from wavescope.errors import InvalidConfiguration

__all__ = ["WaveformColumn", "extract", "peak_amplitude"]


@dataclass(frozen=True)
class WaveformColumn:
    """Amplitude range covered by one display column (``min <= max``)."""

    min: float
    max: float


def _column_bounds(frame_count: int, target_columns: int) -> np.ndarray:
    """Start offsets of each column plus the end sentinel.

    Columns are ``frame_count // target_columns`` frames long; the last one
    absorbs the remainder.
    """
    step = frame_count // target_columns
    bounds = np.arange(target_columns + 1, dtype=np.intp) * step
    bounds[-1] = frame_count
    return bounds


def extract(buffer: SampleBuffer, target_columns: int) -> list[WaveformColumn]:
    """Reduce a buffer to ``target_columns`` min/max pairs.

    Extremes are taken across all channels. When the buffer has fewer frames
    than columns each column shows the single frame beneath it, and an empty
    buffer yields all-zero columns.

    Args:
        buffer: Decoded audio.
        target_columns: Number of display columns (pane width).

    Returns:
        Exactly ``target_columns`` columns in time order.

    Raises:
        InvalidConfiguration: If ``target_columns`` is smaller than 1.
    """
    if target_columns < 1:
        raise InvalidConfiguration(f"target columns must be >= 1, got {target_columns}")
    if buffer.is_empty:
        return [WaveformColumn(0.0, 0.0)] * target_columns

    frames = buffer.frames()
    per_frame_min = frames.min(axis=1)
    per_frame_max = frames.max(axis=1)
    n = frames.shape[0]

    if n < target_columns:
        idx = (np.arange(target_columns) * n) // target_columns
        mins = per_frame_min[idx]
        maxs = per_frame_max[idx]
    else:
        starts = _column_bounds(n, target_columns)[:-1]
        mins = np.minimum.reduceat(per_frame_min, starts)
        maxs = np.maximum.reduceat(per_frame_max, starts)

    mins = np.clip(mins, -1.0, 1.0)
    maxs = np.clip(maxs, -1.0, 1.0)
    return [WaveformColumn(float(lo), float(hi)) for lo, hi in zip(mins, maxs)]


def peak_amplitude(columns: Sequence[WaveformColumn]) -> float:
    """Largest absolute amplitude in an envelope (``0.0`` when silent)."""
    if not columns:
        return 0.0
    return max(max(abs(c.min), abs(c.max)) for c in columns)
