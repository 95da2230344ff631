"""Audio decoding and the canonical sample store."""

from .buffer import SampleBuffer
from .decoder import decode

__all__ = ["SampleBuffer", "decode"]
