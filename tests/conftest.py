"""Shared test fixtures for the wavescope test suite."""

from __future__ import annotations

import librosa.core.audio  # noqa: F401  # load librosa.resample before tests stub out torch
import numpy as np
import pytest

from wavescope.audio.buffer import SampleBuffer
from wavescope.transcript.index import TranscriptIndex
from wavescope.transcript.models import Word


def sine(freq: float, sample_rate: int, seconds: float, amplitude: float = 1.0) -> np.ndarray:
    """Mono sine wave as float32."""
    t = np.arange(int(sample_rate * seconds)) / sample_rate
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


@pytest.fixture
def sine_buffer() -> SampleBuffer:
    """One second of 440 Hz at 44.1 kHz."""
    return SampleBuffer(sine(440.0, 44_100, 1.0), sample_rate=44_100)


@pytest.fixture
def short_buffer() -> SampleBuffer:
    """One second of 440 Hz at 8 kHz; cheap enough for render tests."""
    return SampleBuffer(sine(440.0, 8_000, 1.0, amplitude=0.5), sample_rate=8_000)


@pytest.fixture
def three_words() -> TranscriptIndex:
    """``hi`` / gap / ``there`` / ``you`` sharing a boundary at 1.2 s."""
    return TranscriptIndex.build(
        [
            Word(text="hi", start=0.0, end=0.5),
            Word(text="there", start=0.6, end=1.2),
            Word(text="you", start=1.2, end=1.8),
        ]
    )
