"""Error kinds raised across the analysis pipeline and the terminal UI.

Load-time errors (decode, model, configuration) are fatal and surface before
the render loop starts. ``TerminalIOError`` and ``InputChannelError`` belong
to the interactive session.
"""

from __future__ import annotations

__all__ = [
    "WavescopeError",
    "UnsupportedFormat",
    "ModelUnavailable",
    "InvalidConfiguration",
    "TerminalIOError",
    "InputChannelError",
]


class WavescopeError(RuntimeError):
    """Base class for all errors reported to the CLI with a diagnostic."""


class UnsupportedFormat(WavescopeError):
    """The decoder could not read or parse the input file."""


class ModelUnavailable(WavescopeError):
    """The transcription engine is missing, misconfigured or failed to run."""


class InvalidConfiguration(WavescopeError, ValueError):
    """A user-supplied parameter is out of range (e.g. non power-of-two window)."""


class TerminalIOError(WavescopeError):
    """The rendering surface could not be initialized or written to."""


class InputChannelError(WavescopeError):
    """Reading key presses from the terminal failed."""
