"""Timed word model shared by the transcription engine and the index."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

__all__ = ["Word"]


class Word(BaseModel):
    """Represents a single word with timing information."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="The transcribed word.")
    start: float = Field(..., ge=0.0, description="Start time of the word in seconds.")
    end: float = Field(..., ge=0.0, description="End time of the word in seconds.")
    confidence: float | None = Field(None, description="Optional confidence score of the word.")

    @model_validator(mode="after")
    def _check_order(self) -> Word:
        if self.start > self.end:
            raise ValueError(f"word {self.text!r} starts after it ends ({self.start} > {self.end})")
        return self

    @property
    def duration(self) -> float:
        return self.end - self.start
