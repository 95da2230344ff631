"""Decoder boundary: turn an audio file into a :class:`SampleBuffer`.

Unlike the transcription path, decoding keeps the native sample rate and
channel layout; the spectrogram and waveform want the file as recorded.
Backends are tried in order: libsndfile via *soundfile*, an FFmpeg pipe and
finally *pydub*.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path

import numpy as np
import soundfile as sf  # type: ignore
from pydub import AudioSegment  # type: ignore  # fallback only
from pydub.exceptions import CouldntDecodeError  # type: ignore

from wavescope.audio.buffer import SampleBuffer
from wavescope.errors import UnsupportedFormat
from wavescope.utils.constant import FORCE_FFMPEG

logger = logging.getLogger(__name__)

__all__ = ["decode"]


def _validate_audio_path(path: Path | str) -> Path:
    """Reject inputs that would be misread by FFmpeg's argument parser.

    Args:
        path: User-supplied input path.

    Returns:
        The path as a :class:`~pathlib.Path`.

    Raises:
        ValueError: For URL-like inputs or names starting with ``-``.
    """
    text = str(path)
    if "://" in text:
        raise ValueError("input must be a local filesystem path")
    if text.startswith("-"):
        raise ValueError("input path must not start with '-'")
    return Path(text)


def _probe_with_ffprobe(path: Path) -> tuple[int, int]:
    """Return ``(sample_rate, channels)`` of the first audio stream.

    Raises:
        RuntimeError: If ffprobe is missing, fails, or finds no audio stream.
    """
    if shutil.which("ffprobe") is None:
        raise RuntimeError("ffprobe is not installed or not in PATH.")
    cmd = [
        "ffprobe",
        "-v",
        "error",
        "-select_streams",
        "a:0",
        "-show_entries",
        "stream=sample_rate,channels",
        "-of",
        "json",
        str(path),
    ]
    try:
        out = subprocess.run(cmd, capture_output=True, check=True).stdout
    except subprocess.CalledProcessError as exc:
        raise RuntimeError(f"ffprobe failed: {exc.stderr.decode(errors='ignore')}") from exc
    streams = json.loads(out or b"{}").get("streams") or []
    if not streams:
        raise RuntimeError("no audio stream found")
    return int(streams[0]["sample_rate"]), int(streams[0]["channels"])


def _load_with_ffmpeg(path: Path) -> tuple[np.ndarray, int, int]:
    """Decode with FFmpeg to interleaved float32 at the native layout.

    Returns:
        ``(samples, sample_rate, channels)``.

    Raises:
        RuntimeError: If FFmpeg is not available or fails to decode the file.
    """
    if shutil.which("ffmpeg") is None:
        raise RuntimeError("FFmpeg is not installed or not in PATH.")
    sr, channels = _probe_with_ffprobe(path)
    cmd = [
        "ffmpeg",
        "-nostdin",
        "-i",
        str(path),
        "-threads",
        "0",
        "-f",
        "f32le",
        "-acodec",
        "pcm_f32le",
        "-ac",
        str(channels),
        "-ar",
        str(sr),
        "-",
    ]
    try:
        pcm = subprocess.run(cmd, capture_output=True, check=True).stdout
    except subprocess.CalledProcessError as exc:
        raise RuntimeError(f"FFmpeg decoding failed: {exc.stderr.decode(errors='ignore')}") from exc

    data = np.frombuffer(pcm, np.float32)
    # A truncated stream can end mid-frame.
    data = data[: data.size - data.size % channels]
    return data, sr, channels


def _load_with_soundfile(path: Path) -> tuple[np.ndarray, int, int]:
    """Decode with libsndfile; ``always_2d`` keeps the channel axis."""
    frames, sr = sf.read(str(path), dtype="float32", always_2d=True)
    return frames.reshape(-1), int(sr), int(frames.shape[1])


def _load_with_pydub(path: Path) -> tuple[np.ndarray, int, int]:
    """Last-resort decode through pydub (which shells out to FFmpeg itself).

    Returns:
        ``(samples, sample_rate, channels)`` with samples scaled from the
        segment's integer width to ``[-1, 1]``.
    """
    seg: AudioSegment = AudioSegment.from_file(path)
    samples = np.array(seg.get_array_of_samples())
    full_scale = float(1 << (8 * seg.sample_width - 1))
    data = samples.astype(np.float32) / full_scale
    return data, int(seg.frame_rate), int(seg.channels)


def _normalize(data: np.ndarray) -> np.ndarray:
    """Scale by the peak when a backend returned values outside ``[-1, 1]``."""
    if data.size == 0:
        return data
    peak = float(np.max(np.abs(data)))
    if peak > 1.0:
        logger.debug(f"Normalizing samples by peak {peak:.3f}")
        return data / peak
    return data


def decode(path: Path | str) -> SampleBuffer:
    """Decode an audio file into a :class:`SampleBuffer`.

    Args:
        path: Audio file on the local filesystem.

    Returns:
        The decoded samples at native sample rate and channel count.

    Raises:
        UnsupportedFormat: If the path is missing or no backend can decode it.
    """
    try:
        audio_path = _validate_audio_path(path)
    except ValueError as exc:
        raise UnsupportedFormat(str(exc)) from exc
    if not audio_path.is_file():
        raise UnsupportedFormat(f"{audio_path}: no such file")

    # Order: FFmpeg when forced, soundfile, FFmpeg (unless already tried), pydub.
    failures: list[str] = []
    result: tuple[np.ndarray, int, int] | None = None

    ffmpeg_tried = False
    if FORCE_FFMPEG:
        ffmpeg_tried = True
        try:
            result = _load_with_ffmpeg(audio_path)
        except (RuntimeError, KeyError, ValueError) as exc:
            failures.append(f"ffmpeg: {exc}")

    if result is None:
        try:
            result = _load_with_soundfile(audio_path)
        except (RuntimeError, sf.LibsndfileError) as exc:
            failures.append(f"soundfile: {exc}")

    if result is None and not ffmpeg_tried:
        try:
            result = _load_with_ffmpeg(audio_path)
        except (RuntimeError, KeyError, ValueError) as exc:
            failures.append(f"ffmpeg: {exc}")

    if result is None:
        try:
            result = _load_with_pydub(audio_path)
        except (CouldntDecodeError, OSError, IndexError) as exc:
            failures.append(f"pydub: {exc}")

    if result is None:
        raise UnsupportedFormat(f"{audio_path}: cannot decode ({'; '.join(failures)})")

    data, sr, channels = result
    if failures:
        logger.debug(f"Decoder fallbacks used for {audio_path.name}: {failures}")
    buffer = SampleBuffer(samples=_normalize(data), sample_rate=sr, channel_count=channels)
    logger.info(
        f"Decoded {audio_path.name}: {buffer.frame_count} frames, "
        f"{buffer.sample_rate} Hz, {buffer.channel_count} ch, {buffer.duration:.2f}s"
    )
    return buffer
