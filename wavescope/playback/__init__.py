from .clock import ClockState, PlaybackClock

__all__ = ["ClockState", "PlaybackClock"]
