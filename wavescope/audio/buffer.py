"""Canonical PCM sample store shared by every analysis stage."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from wavescope.errors import InvalidConfiguration

__all__ = ["SampleBuffer"]


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Interleaved float32 samples in ``[-1, 1]`` plus layout metadata.

    The sample array is copied to float32 and marked read-only on
    construction; the buffer is never mutated afterwards, so analysis workers
    and the render loop can share it without locking.

    Attributes:
        samples: 1-D interleaved samples (``frame0_ch0, frame0_ch1, ...``).
        sample_rate: Frames per second.
        channel_count: Number of interleaved channels.
    """

    samples: np.ndarray = field(repr=False)
    sample_rate: int
    channel_count: int = 1

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise InvalidConfiguration(f"sample rate must be positive, got {self.sample_rate}")
        if self.channel_count <= 0:
            raise InvalidConfiguration(
                f"channel count must be positive, got {self.channel_count}"
            )
        data = np.array(self.samples, dtype=np.float32).reshape(-1)
        if data.size % self.channel_count:
            raise InvalidConfiguration(
                f"{data.size} samples do not divide into {self.channel_count} channels"
            )
        data.setflags(write=False)
        object.__setattr__(self, "samples", data)

    @classmethod
    def from_frames(cls, frames: np.ndarray, sample_rate: int) -> SampleBuffer:
        """Build a buffer from a ``(n_frames,)`` or ``(n_frames, channels)`` array."""
        arr = np.asarray(frames, dtype=np.float32)
        channels = 1 if arr.ndim == 1 else arr.shape[1]
        return cls(samples=arr.reshape(-1), sample_rate=sample_rate, channel_count=channels)

    @property
    def frame_count(self) -> int:
        """Samples per channel."""
        return self.samples.size // self.channel_count

    @property
    def duration(self) -> float:
        """Length in seconds."""
        return self.samples.size / (self.sample_rate * self.channel_count)

    @property
    def is_empty(self) -> bool:
        return self.samples.size == 0

    def frames(self) -> np.ndarray:
        """Return a ``(frame_count, channel_count)`` read-only view."""
        return self.samples.reshape(-1, self.channel_count)

    def mono(self) -> np.ndarray:
        """Average the channels into a 1-D float32 signal."""
        if self.channel_count == 1:
            return self.samples
        return self.frames().mean(axis=1, dtype=np.float64).astype(np.float32)
