"""Splitting long audio into overlapping windows for the ASR model."""

from .chunker import split_for_transcription

__all__ = ["split_for_transcription"]
