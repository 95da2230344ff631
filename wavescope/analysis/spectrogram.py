"""Short-time Fourier spectrogram on a bounded decibel scale.

The whole file is analysed once, up front. Frames are independent, so they
are computed in index-range batches on a thread pool; each batch writes a
disjoint slice of one preallocated matrix and the pool is joined before the
result is returned. No locking is involved.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import cached_property

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from wavescope.audio.buffer import SampleBuffer
from wavescope.config import AnalysisConfig
from wavescope.utils.constant import DB_CEILING, DB_FLOOR, DEFAULT_WINDOW_SIZE, STFT_WORKERS

logger = logging.getLogger(__name__)

__all__ = ["Spectrogram", "SpectrogramFrame", "compute"]

# Added to magnitudes before log10 so silence maps to a finite value.
EPSILON = 1e-10

# Frames handed to one worker task.
_BATCH_FRAMES = 256


@dataclass(frozen=True, eq=False)
class SpectrogramFrame:
    """One STFT column: start time and clamped dB magnitude per bin."""

    timestamp: float
    magnitudes: np.ndarray = field(repr=False)


@dataclass(frozen=True, eq=False)
class Spectrogram(Sequence):
    """Time-ordered sequence of :class:`SpectrogramFrame`.

    Backed by one read-only ``(n_frames, window_size // 2 + 1)`` float32
    matrix; frames are views into it.
    """

    magnitudes: np.ndarray = field(repr=False)
    timestamps: np.ndarray = field(repr=False)
    window_size: int
    hop_size: int
    sample_rate: int
    floor_db: float = DB_FLOOR
    ceiling_db: float = DB_CEILING

    def __post_init__(self) -> None:
        self.magnitudes.setflags(write=False)
        self.timestamps.setflags(write=False)

    @cached_property
    def frames(self) -> list[SpectrogramFrame]:
        return [
            SpectrogramFrame(timestamp=float(ts), magnitudes=row)
            for ts, row in zip(self.timestamps, self.magnitudes)
        ]

    def __len__(self) -> int:
        return self.magnitudes.shape[0]

    def __getitem__(self, index):  # type: ignore[override]
        return self.frames[index]

    def __iter__(self) -> Iterator[SpectrogramFrame]:
        return iter(self.frames)

    @property
    def bin_count(self) -> int:
        return self.window_size // 2 + 1

    @property
    def frame_duration(self) -> float:
        """Seconds between consecutive frame starts."""
        return self.hop_size / self.sample_rate

    def bin_frequency(self, index: int | np.ndarray) -> float | np.ndarray:
        """Centre frequency in Hz of bin ``index``."""
        return index * self.sample_rate / self.window_size

    def frame_index_at(self, t: float) -> int:
        """Index of the last frame starting at or before ``t`` (``-1`` if none)."""
        return int(np.searchsorted(self.timestamps, t, side="right")) - 1

    def index_range(self, t0: float, t1: float) -> tuple[int, int]:
        """Half-open frame index range whose timestamps fall in ``[t0, t1]``."""
        lo = int(np.searchsorted(self.timestamps, t0, side="left"))
        hi = int(np.searchsorted(self.timestamps, t1, side="right"))
        return lo, hi


def _frame_count(total: int, window_size: int, hop: int) -> int:
    if total < window_size:
        return 0
    return (total - window_size) // hop + 1


def _compute_batch(
    windows: np.ndarray,
    taper: np.ndarray,
    scale: float,
    floor_db: float,
    ceiling_db: float,
    out: np.ndarray,
    start: int,
    stop: int,
) -> None:
    """Fill ``out[start:stop]`` from ``windows[start:stop]``."""
    segment = windows[start:stop] * taper
    spectrum = np.fft.rfft(segment, axis=1)
    magnitude = np.abs(spectrum) * scale
    db = 20.0 * np.log10(magnitude + EPSILON)
    np.clip(db, floor_db, ceiling_db, out=db)
    out[start:stop] = db


def compute(
    buffer: SampleBuffer,
    window_size: int = DEFAULT_WINDOW_SIZE,
    hop_size: int | None = None,
    *,
    floor_db: float = DB_FLOOR,
    ceiling_db: float = DB_CEILING,
    workers: int = STFT_WORKERS,
) -> Spectrogram:
    """Compute the spectrogram of a buffer.

    The signal is mixed to mono, cut into ``window_size`` frames every
    ``hop_size`` samples (only frames that fit entirely), tapered with a Hann
    window and transformed with a real FFT. Magnitudes are scaled by
    ``2 / sum(window)`` so a full-scale sine peaks near 0 dB, converted with
    ``20*log10(mag + EPSILON)`` and clamped to ``[floor_db, ceiling_db]``.

    Args:
        buffer: Decoded audio.
        window_size: FFT length, a power of two.
        hop_size: Samples between frame starts; defaults to ``window_size // 4``.
        floor_db: Lower magnitude clamp.
        ceiling_db: Upper magnitude clamp.
        workers: Thread count; ``0`` picks one per CPU.

    Returns:
        The spectrogram; empty when the buffer is shorter than one window.

    Raises:
        InvalidConfiguration: On a non power-of-two window, non-positive hop
            or empty dB range.
    """
    config = AnalysisConfig(
        window_size=window_size,
        hop_size=hop_size,
        floor_db=floor_db,
        ceiling_db=ceiling_db,
        workers=workers,
    )
    config.validate()
    hop = config.effective_hop

    mono = buffer.mono().astype(np.float64)
    n_frames = _frame_count(mono.size, window_size, hop)
    n_bins = window_size // 2 + 1
    out = np.full((n_frames, n_bins), floor_db, dtype=np.float32)
    timestamps = np.arange(n_frames, dtype=np.float64) * hop / buffer.sample_rate

    if n_frames == 0:
        logger.warning(
            f"Audio shorter than one {window_size}-sample window; spectrogram is empty"
        )
        return Spectrogram(out, timestamps, window_size, hop, buffer.sample_rate, floor_db, ceiling_db)

    taper = np.hanning(window_size)
    total = float(taper.sum())
    scale = 2.0 / total if total > 0 else 1.0
    # Strided view, no copy: row k is mono[k*hop : k*hop + window_size].
    windows = sliding_window_view(mono, window_size)[::hop][:n_frames]

    batches = [(s, min(s + _BATCH_FRAMES, n_frames)) for s in range(0, n_frames, _BATCH_FRAMES)]
    max_workers = min(workers or (os.cpu_count() or 1), len(batches))

    t0 = time.perf_counter()
    if max_workers <= 1:
        for start, stop in batches:
            _compute_batch(windows, taper, scale, floor_db, ceiling_db, out, start, stop)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [
                pool.submit(
                    _compute_batch, windows, taper, scale, floor_db, ceiling_db, out, start, stop
                )
                for start, stop in batches
            ]
            for future in futures:
                future.result()
    elapsed_ms = (time.perf_counter() - t0) * 1000
    logger.debug(
        f"STFT: {n_frames} frames x {n_bins} bins in {elapsed_ms:.1f} ms "
        f"({len(batches)} batches, {max_workers} workers)"
    )
    return Spectrogram(out, timestamps, window_size, hop, buffer.sample_rate, floor_db, ceiling_db)
