"""Sliding-window chunker for long-audio transcription.

Transcribing an hour of audio in one call exhausts GPU memory, so the mono
signal is cut into overlapping windows, each tagged with its offset in the
source. Words from the overlap regions are de-duplicated later by
:func:`wavescope.transcript.word_timestamps.get_word_timestamps`.

The module has no NeMo or torch imports and can be tested without them.
"""

from __future__ import annotations

import numpy as np

from wavescope.errors import InvalidConfiguration

__all__ = ["split_for_transcription"]


def split_for_transcription(
    wav: np.ndarray,
    sr: int,
    chunk_len_sec: float,
    overlap_sec: float = 0.0,
) -> list[tuple[np.ndarray, float]]:
    """Split a mono waveform into overlapping windows.

    Parameters:
        wav (np.ndarray): 1-D mono waveform.
        sr (int): Sample rate in Hz.
        chunk_len_sec (float): Window length in seconds. If <= 0, or the
            signal fits in one window, the whole signal is one chunk.
        overlap_sec (float): Overlap between successive windows in seconds.

    Returns:
        list[tuple[np.ndarray, float]]: ``(chunk, offset_sec)`` pairs; chunks
            are views into ``wav``.

    Raises:
        InvalidConfiguration: If ``overlap_sec`` is negative or not shorter
            than ``chunk_len_sec``.
    """
    window = int(round(chunk_len_sec * sr))
    if window <= 0:
        return [(wav, 0.0)]
    if overlap_sec < 0:
        raise InvalidConfiguration("chunk overlap must be >= 0")
    if overlap_sec >= chunk_len_sec:
        raise InvalidConfiguration("chunk overlap must be shorter than the chunk length")
    if wav.size <= window:
        return [(wav, 0.0)]

    step = max(window - int(round(overlap_sec * sr)), 1)
    # Windows start every `step` samples; the last one is the first that
    # reaches the end of the signal and may be shorter than `window`.
    starts = list(range(0, wav.size - window, step))
    starts.append(starts[-1] + step)
    return [(wav[s : s + window], s / sr) for s in starts]
