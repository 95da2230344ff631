"""Word-level timestamps from NeMo transducer hypotheses.

SentencePiece tokenizers mark the first token of every word with a leading
``"▁"``; tokens are grouped into words on that marker. Hypotheses from
overlapping chunks carry a ``start_offset`` and are merged into one timeline.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Protocol

import numpy as np

from wavescope.transcript.models import Word

__all__ = ["get_word_timestamps", "dedupe_overlapping"]

_WORD_MARKER = "▁"

# Words starting this much before the previous word's end are duplicates
# coming from the overlap between two chunks.
OVERLAP_TOLERANCE_SEC = 0.03


class SupportsTokenizer(Protocol):
    """Subset of the NeMo tokenizer API used here."""

    def ids_to_tokens(self, ids: list[int]) -> list[str]: ...

    def ids_to_text(self, ids: list[int]) -> str: ...


def _to_numpy(value: Any) -> np.ndarray:
    """Accept torch tensors as well as plain sequences."""
    if hasattr(value, "detach"):
        value = value.detach().cpu().numpy()
    return np.asarray(value)


def _hypothesis_words(
    hypo: Any,
    tokenizer: SupportsTokenizer,
    time_stride: float | None,
) -> list[Word]:
    """Group one hypothesis' tokens into timed words."""
    token_ids = [int(t) for t in _to_numpy(hypo.y_sequence)]
    times = _to_numpy(hypo.timestamp).astype(float)
    if time_stride is not None:
        times = times * time_stride
    times = times + float(getattr(hypo, "start_offset", 0.0))
    if not token_ids:
        return []

    words: list[Word] = []
    group: list[int] = []
    group_start = 0.0

    def _flush(end: float) -> None:
        text = tokenizer.ids_to_text(group).lstrip(_WORD_MARKER).strip()
        if text:
            words.append(Word(text=text, start=group_start, end=max(end, group_start)))

    for token_id, time in zip(token_ids, times):
        token = tokenizer.ids_to_tokens([token_id])[0]
        if token.startswith(_WORD_MARKER) and group:
            _flush(time)
            group = []
        if not group:
            group_start = float(time)
        group.append(token_id)
    if group:
        # The last token gets one encoder frame of duration.
        _flush(float(times[-1]) + (time_stride or 0.0))
    return words


def dedupe_overlapping(words: Iterable[Word], tolerance: float = OVERLAP_TOLERANCE_SEC) -> list[Word]:
    """Sort words and drop those re-emitted by an overlapping chunk.

    Args:
        words: Words from one or more hypotheses.
        tolerance: Allowed overlap before a word counts as a duplicate.

    Returns:
        Words in start order with duplicates removed.
    """
    kept: list[Word] = []
    last_end = float("-inf")
    for w in sorted(words, key=lambda w: w.start):
        if w.start < last_end - tolerance:
            continue
        kept.append(w)
        last_end = w.end
    return kept


def get_word_timestamps(
    hypotheses: Sequence[Any],
    tokenizer: SupportsTokenizer,
    time_stride: float | None = None,
) -> list[Word]:
    """Extract word-level timestamps from a list of transducer hypotheses.

    Parameters:
        hypotheses: NeMo ``Hypothesis`` objects with ``y_sequence`` and
            ``timestamp``; objects missing either are skipped.
        tokenizer: Tokenizer of the model that produced the hypotheses.
        time_stride: Seconds per encoder frame; ``None`` when timestamps are
            already in seconds.

    Returns:
        list[Word]: Words in start order, overlap duplicates removed.
    """
    words: list[Word] = []
    for hypo in hypotheses:
        if not hasattr(hypo, "y_sequence") or not hasattr(hypo, "timestamp"):
            continue
        words.extend(_hypothesis_words(hypo, tokenizer, time_stride))
    return dedupe_overlapping(words)
