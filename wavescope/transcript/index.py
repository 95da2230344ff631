"""Time-indexed transcript lookups for the render loop.

Words are kept sorted by start time. ``active_word`` is a binary search over
precomputed active spans and ``words_in_range`` is a binary search plus a
scan over the hits, so each render costs O(log n + k).

Overlap policy (first-start): when the engine emits overlapping words, the
earlier-starting word owns the shared interval. The later word becomes
active only once the earlier one ends; a word entirely covered by an earlier
one is never active but is still listed by ``words_in_range``.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterable

from wavescope.transcript.models import Word

logger = logging.getLogger(__name__)

__all__ = ["TranscriptIndex"]


class TranscriptIndex:
    """Read-only lookup structure over a sequence of timed words."""

    def __init__(self, words: list[Word]) -> None:
        self._words = words
        self._starts = [w.start for w in words]
        # Running maximum of end times: words before index i may still reach t
        # only if _max_end[i-1] > t.
        self._max_end: list[float] = []
        running = float("-inf")
        for w in words:
            running = max(running, w.end)
            self._max_end.append(running)

        # Active spans after first-start overlap resolution. Only words with a
        # non-empty span take part in active_word lookups.
        self._span_starts: list[float] = []
        self._span_ends: list[float] = []
        self._span_owner: list[int] = []
        claimed = float("-inf")
        for i, w in enumerate(words):
            span_start = max(w.start, claimed)
            if span_start < w.end:
                self._span_starts.append(span_start)
                self._span_ends.append(w.end)
                self._span_owner.append(i)
            claimed = max(claimed, w.end)

    @classmethod
    def build(cls, words: Iterable[Word]) -> TranscriptIndex:
        """Sort, clean and index engine output.

        Words with empty text are dropped.

        Args:
            words: Timed words in any order.

        Returns:
            The index.
        """
        kept = [w for w in words if w.text.strip()]
        kept.sort(key=lambda w: (w.start, w.end))
        overlaps = sum(1 for a, b in zip(kept, kept[1:]) if b.start < a.end)
        if overlaps:
            logger.info(f"{overlaps} overlapping word(s); earlier-starting words take precedence")
        return cls(kept)

    def __len__(self) -> int:
        return len(self._words)

    @property
    def words(self) -> list[Word]:
        return list(self._words)

    def __getitem__(self, index: int) -> Word:
        return self._words[index]

    def index_of(self, word: Word) -> int:
        """Position of ``word`` in start order.

        Raises:
            ValueError: If the word is not part of this index.
        """
        lo = bisect.bisect_left(self._starts, word.start)
        for i in range(lo, len(self._words)):
            if self._words[i] is word or self._words[i] == word:
                return i
            if self._words[i].start > word.start:
                break
        raise ValueError(f"{word!r} is not in the transcript")

    def active_index(self, t: float) -> int | None:
        """Index of the word active at ``t``, or ``None`` in a gap."""
        pos = bisect.bisect_right(self._span_starts, t) - 1
        if pos < 0 or t >= self._span_ends[pos]:
            return None
        return self._span_owner[pos]

    def active_word(self, t: float) -> Word | None:
        """Word whose ``[start, end)`` contains ``t``.

        Start is inclusive and end exclusive, so at a shared boundary the
        following word is active.
        """
        idx = self.active_index(t)
        return None if idx is None else self._words[idx]

    def last_started_index(self, t: float) -> int | None:
        """Index of the latest word starting at or before ``t``."""
        pos = bisect.bisect_right(self._starts, t) - 1
        return pos if pos >= 0 else None

    def range_indices(self, t0: float, t1: float) -> range:
        """Candidate index range for words intersecting ``[t0, t1]``.

        Words before the range all end at or before ``t0``; words after it
        start after ``t1``. Short words nested inside a longer neighbour can
        still end before ``t0`` and are filtered by :meth:`words_in_range`.
        """
        if t1 < t0:
            return range(0)
        hi = bisect.bisect_right(self._starts, t1)
        lo = bisect.bisect_right(self._max_end, t0)
        return range(lo, max(lo, hi))

    def words_in_range(self, t0: float, t1: float) -> list[Word]:
        """Words overlapping ``[t0, t1]`` in start order."""
        return [
            self._words[i]
            for i in self.range_indices(t0, t1)
            if self._words[i].end > t0
        ]
