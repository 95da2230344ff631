"""Configuration dataclasses for the analysis pre-pass and the viewer.

Defaults come from :mod:`wavescope.utils.constant`, which in turn honours
environment variables and the project ``.env`` file.
"""

from __future__ import annotations

from dataclasses import dataclass

from wavescope.errors import InvalidConfiguration
from wavescope.utils.constant import (
    CHUNK_LEN_SEC,
    CHUNK_OVERLAP_SEC,
    DB_CEILING,
    DB_FLOOR,
    DEFAULT_BATCH_SIZE,
    DEFAULT_FPS,
    DEFAULT_WINDOW_SIZE,
    PARAKEET_MODEL_NAME,
    SEEK_STEP_SEC,
    SPECTROGRAM_SCROLL_MODE,
    SPECTROGRAM_SECONDS_PER_COLUMN,
    STFT_WORKERS,
    TRANSCRIPT_LOOKAHEAD_SEC,
    TRANSCRIPT_LOOKBACK_SEC,
)

SCROLL_MODES = ("scroll", "overview")


def is_power_of_two(value: int) -> bool:
    """Return ``True`` for 1, 2, 4, 8, ..."""
    return value > 0 and (value & (value - 1)) == 0


@dataclass
class AnalysisConfig:
    """Groups STFT settings.

    Attributes:
        window_size: FFT length in samples; must be a power of two.
        hop_size: Sample advance between frames. ``None`` means
            ``window_size // 4`` (75% overlap).
        floor_db: Lower clamp of the magnitude scale.
        ceiling_db: Upper clamp of the magnitude scale.
        workers: Thread count for frame computation; ``0`` lets the
            executor pick.

    """

    window_size: int = DEFAULT_WINDOW_SIZE
    hop_size: int | None = None
    floor_db: float = DB_FLOOR
    ceiling_db: float = DB_CEILING
    workers: int = STFT_WORKERS

    @property
    def effective_hop(self) -> int:
        """Hop size with the default applied."""
        return self.hop_size if self.hop_size is not None else max(self.window_size // 4, 1)

    def validate(self) -> None:
        """Reject settings the spectrogram engine cannot honour.

        Raises:
            InvalidConfiguration: On a non power-of-two window, a non-positive
                hop, an empty dB range or a negative worker count.
        """
        if self.window_size < 2 or not is_power_of_two(self.window_size):
            raise InvalidConfiguration(
                f"window size must be a power of two >= 2, got {self.window_size}"
            )
        if self.effective_hop <= 0:
            raise InvalidConfiguration(f"hop size must be positive, got {self.hop_size}")
        if self.floor_db >= self.ceiling_db:
            raise InvalidConfiguration(
                f"dB floor ({self.floor_db}) must be below the ceiling ({self.ceiling_db})"
            )
        if self.workers < 0:
            raise InvalidConfiguration(f"worker count must be >= 0, got {self.workers}")


@dataclass
class TranscriptionConfig:
    """Groups transcription-related settings.

    Attributes:
        enabled: Run the ASR model; when ``False`` the transcript pane stays empty.
        model_name: Hugging Face model ID or local ``.nemo`` path.
        batch_size: Number of chunks processed per batch.
        chunk_len_sec: Length of each chunk in seconds.
        overlap_sec: Overlap between chunks in seconds.

    """

    enabled: bool = True
    model_name: str = PARAKEET_MODEL_NAME
    batch_size: int = DEFAULT_BATCH_SIZE
    chunk_len_sec: int = CHUNK_LEN_SEC
    overlap_sec: int = CHUNK_OVERLAP_SEC


@dataclass
class DisplayConfig:
    """Groups viewer settings.

    Attributes:
        fps: Redraw rate of the render loop.
        scroll_mode: ``"scroll"`` shows a spectrogram window ending at the
            playback position; ``"overview"`` shows the whole file with a cursor.
        log_frequency: Map spectrogram rows on a logarithmic frequency axis.
        max_frequency: Highest frequency shown; ``None`` means Nyquist.
        seconds_per_column: Time span of one spectrogram column in scroll mode.
        lookback_sec: Transcript history shown before the playback position.
        lookahead_sec: Transcript preview shown after the playback position.
        seek_step_sec: Distance of one arrow-key seek.
        auto_gain: Scale the waveform so its peak fills the pane.

    """

    fps: float = DEFAULT_FPS
    scroll_mode: str = SPECTROGRAM_SCROLL_MODE
    log_frequency: bool = True
    max_frequency: float | None = None
    seconds_per_column: float = SPECTROGRAM_SECONDS_PER_COLUMN
    lookback_sec: float = TRANSCRIPT_LOOKBACK_SEC
    lookahead_sec: float = TRANSCRIPT_LOOKAHEAD_SEC
    seek_step_sec: float = SEEK_STEP_SEC
    auto_gain: bool = True

    @property
    def frame_interval(self) -> float:
        """Seconds between two redraws."""
        return 1.0 / self.fps

    def validate(self) -> None:
        """Raise :class:`InvalidConfiguration` on unusable viewer settings."""
        if self.fps <= 0:
            raise InvalidConfiguration(f"fps must be positive, got {self.fps}")
        if self.scroll_mode not in SCROLL_MODES:
            raise InvalidConfiguration(
                f"scroll mode must be one of {', '.join(SCROLL_MODES)}, got {self.scroll_mode!r}"
            )
        if self.seconds_per_column <= 0:
            raise InvalidConfiguration("seconds per column must be positive")
        if self.max_frequency is not None and self.max_frequency <= 0:
            raise InvalidConfiguration("max frequency must be positive")


@dataclass
class UIConfig:
    """Groups logging settings.

    Attributes:
        verbose: Enable detailed diagnostic output.
        quiet: Suppress non-error output.

    """

    verbose: bool = False
    quiet: bool = False
