"""Project-wide constants for convenient reuse."""

# pylint: disable=line-too-long

from __future__ import annotations

import os
import sys
from typing import Final

from wavescope.utils.env_loader import load_project_env

# Ensure .env is loaded exactly once at import time for the whole project
if "pytest" not in sys.modules:
    load_project_env()


# FFT window length in samples; must be a power of two.
DEFAULT_WINDOW_SIZE: Final[int] = int(os.getenv("DEFAULT_WINDOW_SIZE", "1024"))

# Decibel range of the spectrogram before color mapping.
DB_FLOOR: Final[float] = float(os.getenv("DB_FLOOR", "-80"))
DB_CEILING: Final[float] = float(os.getenv("DB_CEILING", "0"))

# Worker threads for STFT frame computation (0 = one per CPU)
STFT_WORKERS: Final[int] = int(os.getenv("STFT_WORKERS", "0"))

# Redraw rate of the interactive view
DEFAULT_FPS: Final[float] = float(os.getenv("DEFAULT_FPS", "20"))

# Arrow-key seek distance
SEEK_STEP_SEC: Final[float] = float(os.getenv("SEEK_STEP_SEC", "5.0"))

# Transcript window around the playback position
TRANSCRIPT_LOOKBACK_SEC: Final[float] = float(os.getenv("TRANSCRIPT_LOOKBACK_SEC", "10.0"))
TRANSCRIPT_LOOKAHEAD_SEC: Final[float] = float(os.getenv("TRANSCRIPT_LOOKAHEAD_SEC", "10.0"))

# Spectrogram pane: "scroll" (window ending at now) or "overview" (whole file + cursor)
SPECTROGRAM_SCROLL_MODE: Final[str] = os.getenv("SPECTROGRAM_SCROLL_MODE", "scroll")
# Seconds of audio represented by one spectrogram column in scroll mode
SPECTROGRAM_SECONDS_PER_COLUMN: Final[float] = float(
    os.getenv("SPECTROGRAM_SECONDS_PER_COLUMN", "0.05")
)

# Default Parakeet ASR model name (override via env)
PARAKEET_MODEL_NAME: Final[str] = os.getenv("PARAKEET_MODEL_NAME", "nvidia/parakeet-tdt-0.6b-v3")

# Sample rate expected by the ASR model
TRANSCRIBE_SAMPLE_RATE: Final[int] = int(os.getenv("TRANSCRIBE_SAMPLE_RATE", "16000"))

# Long audio is transcribed in overlapping chunks (seconds).
CHUNK_LEN_SEC: Final[int] = int(os.getenv("CHUNK_LEN_SEC", "300"))
CHUNK_OVERLAP_SEC: Final[int] = int(os.getenv("CHUNK_OVERLAP_SEC", "15"))

# Batch size for model inference
DEFAULT_BATCH_SIZE: Final[int] = int(os.getenv("BATCH_SIZE", "4"))

# Prefer FFmpeg for audio decoding (1 = yes, 0 = try soundfile first)
FORCE_FFMPEG: Final[bool] = os.getenv("FORCE_FFMPEG", "0") == "1"

# Optional log file; records emitted while the UI is live also land here
WAVESCOPE_LOG_FILE: Final[str | None] = os.getenv("WAVESCOPE_LOG_FILE") or None
