"""Command-line interface for wavescope using Typer.

Runs the analysis pre-pass (decode, spectrogram, transcription) on one file,
then hands the terminal to the interactive viewer until the user quits.
"""

import enum
import logging
import pathlib
from typing import Annotated

import typer

from wavescope import __version__
from wavescope.app import event_loop, session
from wavescope.config import AnalysisConfig, DisplayConfig, TranscriptionConfig, UIConfig
from wavescope.errors import WavescopeError
from wavescope.utils.constant import (
    DEFAULT_FPS,
    DEFAULT_WINDOW_SIZE,
    PARAKEET_MODEL_NAME,
    SPECTROGRAM_SCROLL_MODE,
)
from wavescope.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


class ScrollMode(str, enum.Enum):
    """Spectrogram time-axis modes."""

    scroll = "scroll"
    overview = "overview"


def version_callback(value: bool) -> None:
    """Show the application's version and exit.

    Args:
        value: When True, print the version and exit.

    Raises:
        typer.Exit: Always raised after printing when value is True.

    """
    if value:
        print(f"wavescope version: {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="wavescope",
    help=(
        "Terminal audio viewer: scrolling transcript, waveform and spectrogram "
        "synchronized to a playback clock."
    ),
    add_completion=False,
)


@app.command()
def view(
    input_file: Annotated[
        pathlib.Path,
        typer.Option(
            "--input",
            "-i",
            help="Audio file to open (any format soundfile or FFmpeg can decode).",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
            show_default=False,
        ),
    ],
    # Analysis
    window_size: Annotated[
        int,
        typer.Option(
            "--window-size",
            "-w",
            help="STFT window length in samples (power of two).",
        ),
    ] = DEFAULT_WINDOW_SIZE,
    hop_size: Annotated[
        int | None,
        typer.Option(
            "--hop-size",
            help="Samples between successive STFT frames (default: window / 4).",
            show_default=False,
        ),
    ] = None,
    # Display
    scroll_mode: Annotated[
        ScrollMode,
        typer.Option(
            "--scroll-mode",
            help="'scroll' follows the playback position; 'overview' shows the whole file.",
            case_sensitive=False,
        ),
    ] = ScrollMode(SPECTROGRAM_SCROLL_MODE),
    linear_freq: Annotated[
        bool,
        typer.Option(
            "--linear-freq",
            help="Use a linear instead of logarithmic spectrogram frequency axis.",
        ),
    ] = False,
    max_freq: Annotated[
        float | None,
        typer.Option(
            "--max-freq",
            help="Highest frequency shown in the spectrogram in Hz (default: Nyquist).",
            show_default=False,
        ),
    ] = None,
    fps: Annotated[
        float,
        typer.Option("--fps", help="Redraw rate in frames per second."),
    ] = DEFAULT_FPS,
    # Transcription
    model_name: Annotated[
        str,
        typer.Option(
            "--model",
            help="Hugging Face Hub model ID or local path to the NeMo ASR model.",
        ),
    ] = PARAKEET_MODEL_NAME,
    no_transcribe: Annotated[
        bool,
        typer.Option(
            "--no-transcribe",
            help="Skip speech recognition; the transcript pane stays empty.",
        ),
    ] = False,
    # UX
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", help="Suppress console output except errors."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show the application's version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Open an audio file in the interactive terminal viewer.

    Keys: space play/pause, left/right (h/l) seek, Home/0 restart, q/Esc quit.

    Raises:
        typer.Exit: With code 1 when loading or viewing fails.
    """
    ui_config = UIConfig(verbose=verbose, quiet=quiet)
    configure_logging(verbose=ui_config.verbose, quiet=ui_config.quiet)

    analysis_config = AnalysisConfig(window_size=window_size, hop_size=hop_size)
    transcription_config = TranscriptionConfig(enabled=not no_transcribe, model_name=model_name)
    display_config = DisplayConfig(
        fps=fps,
        scroll_mode=scroll_mode.value,
        log_frequency=not linear_freq,
        max_frequency=max_freq,
    )

    try:
        analysis_config.validate()
        display_config.validate()
        if ui_config.verbose and not ui_config.quiet:
            session.display_settings(
                input_file, analysis_config, transcription_config, display_config
            )
        loaded = session.load_session(
            input_file,
            analysis_config,
            transcription_config,
            show_progress=not ui_config.quiet,
        )
        event_loop.run_viewer(loaded, display_config)
    except WavescopeError as exc:
        logger.debug("Fatal error", exc_info=True)
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":
    app()
