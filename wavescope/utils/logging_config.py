"""Centralized logging configuration for wavescope.

The CLI calls :func:`configure_logging` once, before the analysis pre-pass.
Records go to stdout (and optionally a file); NeMo and Transformers are kept
quiet unless verbose output is requested, since their INFO chatter would
drown the progress display.
"""

from __future__ import annotations

import logging
import os
import sys
import warnings
from functools import partial
from typing import Literal

from wavescope.utils.constant import WAVESCOPE_LOG_FILE

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# librosa pulls in numba, which logs every JIT compilation at DEBUG.
_NOISY_LOGGERS = ("numba", "matplotlib", "urllib3", "filelock")


def _resolve_level(level: LogLevel | None, verbose: bool, quiet: bool) -> int:
    if level is not None:
        return getattr(logging, level.upper())
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.CRITICAL
    return logging.INFO


def _build_handlers(log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    return handlers


def _set_asr_verbosity(level_name: str) -> None:
    """Route one verbosity level to NeMo and Transformers.

    The env vars cover libraries imported later; modules that are already
    loaded are updated in place. Nothing is imported here, since importing
    NeMo just to silence it costs several seconds.

    Args:
        level_name: A stdlib level name such as ``"ERROR"``.
    """
    level_name = level_name.upper()
    os.environ["NEMO_LOG_LEVEL"] = level_name
    os.environ["TRANSFORMERS_VERBOSITY"] = level_name.lower()

    nemo_utils = sys.modules.get("nemo.utils")
    if nemo_utils is not None:
        nemo_utils.logging.set_verbosity(getattr(logging, level_name, logging.ERROR))

    hf_logging = sys.modules.get("transformers.utils.logging")
    setter = getattr(hf_logging, f"set_verbosity_{level_name.lower()}", None)
    if callable(setter):
        setter()


def _disable_progress_bars() -> None:
    """Turn NeMo's tqdm bars off for the rest of the process."""
    try:
        import tqdm
    except ImportError:  # pragma: no cover
        return
    tqdm.tqdm = partial(tqdm.tqdm, disable=True)  # type: ignore[attr-defined]


def configure_logging(
    *,
    level: LogLevel | None = None,
    verbose: bool = False,
    quiet: bool = False,
    format_string: str | None = None,
    log_file: str | None = WAVESCOPE_LOG_FILE,
) -> None:
    """Configure the root logger and the ASR dependencies.

    Args:
        level: Explicit root level; wins over ``verbose`` and ``quiet``.
        verbose: DEBUG for wavescope, INFO for NeMo/Transformers.
        quiet: Only critical records; warnings and progress bars are muted.
        format_string: Record format (``DEFAULT_FORMAT`` if None).
        log_file: Also append every record to this file.

    Examples:
        >>> configure_logging(verbose=True)
        >>> configure_logging(level="WARNING", log_file="wavescope.log")
    """
    root_level = _resolve_level(level, verbose, quiet)
    logging.basicConfig(
        level=root_level,
        format=format_string or DEFAULT_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=_build_handlers(log_file),
        force=True,  # replace handlers left by an earlier call
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if verbose:
        _set_asr_verbosity("INFO")
    elif quiet:
        warnings.filterwarnings("ignore")
        _set_asr_verbosity("ERROR")
        _disable_progress_bars()
    else:
        _set_asr_verbosity(os.getenv("NEMO_LOG_LEVEL", "ERROR"))

    logging.getLogger(__name__).debug(
        f"Logging configured: level={logging.getLevelName(root_level)}, file={log_file}"
    )
