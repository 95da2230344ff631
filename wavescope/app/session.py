"""One-time analysis pre-pass run before the viewer takes over the terminal."""

from __future__ import annotations

import logging
import time
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from wavescope.analysis import spectrogram as spectrogram_mod
from wavescope.analysis.spectrogram import Spectrogram
from wavescope.audio import SampleBuffer, decode
from wavescope.config import AnalysisConfig, DisplayConfig, TranscriptionConfig
from wavescope.transcript import engine
from wavescope.transcript.index import TranscriptIndex
from wavescope.transcript.models import Word

logger = logging.getLogger(__name__)

__all__ = ["AnalysisSession", "load_session", "display_settings"]


@dataclass(frozen=True)
class AnalysisSession:
    """Everything the viewer reads; built once and never mutated."""

    source: Path
    buffer: SampleBuffer
    spectrogram: Spectrogram
    transcript: TranscriptIndex


def display_settings(
    source: Path,
    analysis: AnalysisConfig,
    transcription: TranscriptionConfig,
    display: DisplayConfig,
    console: Console | None = None,
) -> None:
    """Print the effective settings as a Rich table (verbose mode)."""
    table = Table(title="wavescope settings", show_header=True, header_style="bold magenta")
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Setting", style="green")
    table.add_column("Value", style="yellow")

    table.add_row("Input", "File", str(source))
    table.add_row("Analysis", "Window Size", str(analysis.window_size))
    table.add_row("Analysis", "Hop Size", str(analysis.effective_hop))
    table.add_row("Analysis", "dB Range", f"{analysis.floor_db:g} .. {analysis.ceiling_db:g}")
    table.add_row("Display", "FPS", f"{display.fps:g}")
    table.add_row("Display", "Scroll Mode", display.scroll_mode)
    table.add_row("Display", "Frequency Axis", "log" if display.log_frequency else "linear")
    if display.max_frequency is not None:
        table.add_row("Display", "Max Frequency (Hz)", f"{display.max_frequency:g}")
    table.add_row("Transcription", "Enabled", str(transcription.enabled))
    if transcription.enabled:
        table.add_row("Transcription", "Model", transcription.model_name)
        table.add_row("Transcription", "Batch Size", str(transcription.batch_size))
        table.add_row("Transcription", "Chunk Length (s)", str(transcription.chunk_len_sec))

    (console or Console()).print(table)


def load_session(
    source: Path,
    analysis: AnalysisConfig | None = None,
    transcription: TranscriptionConfig | None = None,
    *,
    console: Console | None = None,
    show_progress: bool = True,
) -> AnalysisSession:
    """Decode, analyse and transcribe ``source``.

    Configuration is validated before any work starts, so a bad window size
    is reported without decoding anything.

    Args:
        source: Audio file to open.
        analysis: STFT settings.
        transcription: ASR settings; ``enabled=False`` yields an empty transcript.
        console: Console for the progress display.
        show_progress: Show a Rich progress bar while the pre-pass runs.

    Returns:
        The immutable session consumed by the viewer.

    Raises:
        InvalidConfiguration: If ``analysis`` is invalid.
        UnsupportedFormat: If the file cannot be decoded.
        ModelUnavailable: If transcription is enabled but the model cannot run.
    """
    analysis = analysis or AnalysisConfig()
    transcription = transcription or TranscriptionConfig()
    analysis.validate()

    progress_cm = (
        Progress(
            SpinnerColumn(),
            BarColumn(bar_width=None),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        )
        if show_progress
        else nullcontext()
    )
    steps = 3 if transcription.enabled else 2
    t0 = time.perf_counter()

    with progress_cm as progress:
        task = None if progress is None else progress.add_task("Loading audio...", total=steps)

        def advance(description: str) -> None:
            if progress is not None and task is not None:
                progress.update(task, advance=1, description=description)

        buffer = decode(source)
        logger.info(
            f"Loaded {source.name}: {buffer.duration:.2f}s, "
            f"{buffer.sample_rate} Hz, {buffer.channel_count} channel(s)"
        )
        advance("Computing spectrogram...")

        spectrogram = spectrogram_mod.compute(
            buffer,
            analysis.window_size,
            analysis.effective_hop,
            floor_db=analysis.floor_db,
            ceiling_db=analysis.ceiling_db,
            workers=analysis.workers,
        )
        advance("Transcribing audio..." if transcription.enabled else "Done")

        words: list[Word] = []
        if not transcription.enabled:
            logger.info("Transcription disabled")
        elif buffer.is_empty:
            logger.warning("Audio is empty; skipping transcription")
        else:
            words = engine.transcribe(buffer.mono(), buffer.sample_rate, transcription)
            advance("Done")

    transcript = TranscriptIndex.build(words)
    logger.info(
        f"Analysis finished in {time.perf_counter() - t0:.2f}s: "
        f"{len(spectrogram)} spectrogram frame(s), {len(transcript)} word(s)"
    )
    return AnalysisSession(
        source=source, buffer=buffer, spectrogram=spectrogram, transcript=transcript
    )
