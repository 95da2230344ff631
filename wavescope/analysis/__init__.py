"""Precomputed signal views: min/max envelope and STFT spectrogram."""

from .spectrogram import Spectrogram, SpectrogramFrame, compute
from .waveform import WaveformColumn, extract, peak_amplitude

__all__ = [
    "Spectrogram",
    "SpectrogramFrame",
    "WaveformColumn",
    "compute",
    "extract",
    "peak_amplitude",
]
