"""Transcription boundary: mono PCM in, timed words out.

The model sees 16 kHz mono audio, so the signal is resampled with librosa and
split into overlapping chunks before inference. Any failure to import, load
or run the model is reported as :class:`~wavescope.errors.ModelUnavailable`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

import librosa  # type: ignore
import numpy as np

from wavescope.chunking import split_for_transcription
from wavescope.config import TranscriptionConfig
from wavescope.errors import ModelUnavailable
from wavescope.models.parakeet import get_model
from wavescope.transcript.models import Word
from wavescope.transcript.word_timestamps import get_word_timestamps
from wavescope.utils.constant import TRANSCRIBE_SAMPLE_RATE

if TYPE_CHECKING:
    from nemo.collections.asr.models import ASRModel

logger = logging.getLogger(__name__)

__all__ = ["transcribe", "calc_time_stride"]

T = TypeVar("T")

# Preprocessor hop used by NeMo ASR models when the config does not say.
_DEFAULT_WINDOW_STRIDE = 0.01


def _chunks(seq: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield successive ``size``-long slices of ``seq``."""
    for i in range(0, len(seq), size):
        yield seq[i : i + size]


def calc_time_stride(model: ASRModel) -> float:
    """Return seconds per encoder output frame.

    The preprocessor's ``window_stride`` is multiplied by the encoder's
    subsampling factor (8 for Parakeet, giving 80 ms).

    Args:
        model: The ASR model whose configuration is inspected.

    Returns:
        Seconds represented by a single encoder output frame.
    """
    preprocessor = getattr(model.cfg, "preprocessor", None)
    window_stride = getattr(preprocessor, "window_stride", None) or _DEFAULT_WINDOW_STRIDE

    subsampling: Any = getattr(model.encoder, "subsampling_factor", None)
    if subsampling is None:
        subsampling = getattr(getattr(model.cfg, "encoder", None), "subsampling_factor", 1)
    try:
        factor = int(subsampling)
    except (TypeError, ValueError):
        logger.warning(f"Unusable subsampling factor {subsampling!r}; assuming 1")
        factor = 1
    return float(window_stride) * factor


def _to_model_rate(mono: np.ndarray, sample_rate: int) -> np.ndarray:
    audio = np.asarray(mono, dtype=np.float32)
    if sample_rate != TRANSCRIBE_SAMPLE_RATE:
        logger.info(f"Resampling from {sample_rate} Hz to {TRANSCRIBE_SAMPLE_RATE} Hz")
        audio = librosa.resample(
            audio, orig_sr=sample_rate, target_sr=TRANSCRIBE_SAMPLE_RATE, dtype=np.float32
        )
    return audio


def transcribe(
    mono: np.ndarray,
    sample_rate: int,
    config: TranscriptionConfig | None = None,
) -> list[Word]:
    """Run the ASR model over a mono signal.

    Args:
        mono: 1-D float samples in ``[-1, 1]``.
        sample_rate: Sample rate of ``mono``.
        config: Model and chunking settings; defaults apply when ``None``.

    Returns:
        Timed words in start order. Empty for empty audio.

    Raises:
        ModelUnavailable: If the model cannot be imported, loaded or run.
    """
    config = config or TranscriptionConfig()
    if mono.size == 0:
        logger.warning("No samples to transcribe")
        return []

    audio = _to_model_rate(mono, sample_rate)
    segments = split_for_transcription(
        audio, TRANSCRIBE_SAMPLE_RATE, config.chunk_len_sec, config.overlap_sec
    )
    model = get_model(config.model_name)

    try:
        import torch  # pylint: disable=import-outside-toplevel
    except ImportError as exc:
        raise ModelUnavailable("PyTorch is not installed; install the 'asr' extra") from exc

    hypotheses: list[Any] = []
    logger.info(f"Transcribing {len(segments)} chunk(s) with {config.model_name}")
    try:
        for batch in _chunks(segments, max(config.batch_size, 1)):
            with torch.inference_mode():
                results = model.transcribe(
                    audio=[seg for seg, _off in batch],
                    batch_size=len(batch),
                    return_hypotheses=True,
                    verbose=False,
                )
            # Some NeMo models return (best, all) hypothesis tuples.
            if isinstance(results, tuple):
                results = results[0]
            for hyp, (_seg, offset) in zip(results, batch):
                setattr(hyp, "start_offset", offset)
            hypotheses.extend(results)
    except (RuntimeError, ValueError, TypeError) as exc:
        raise ModelUnavailable(f"ASR inference failed: {exc}") from exc

    words = get_word_timestamps(hypotheses, model.tokenizer, time_stride=calc_time_stride(model))
    logger.info(f"Transcription produced {len(words)} word(s)")
    return words
