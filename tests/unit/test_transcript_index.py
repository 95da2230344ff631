"""Unit tests for time-indexed transcript lookups."""

import pytest
from pydantic import ValidationError

from wavescope.transcript.index import TranscriptIndex
from wavescope.transcript.models import Word


def _texts(words: list[Word]) -> list[str]:
    return [w.text for w in words]


def test_gap_has_no_active_word(three_words: TranscriptIndex) -> None:
    assert three_words.active_word(0.55) is None


def test_boundary_belongs_to_following_word(three_words: TranscriptIndex) -> None:
    """Start is inclusive and end exclusive: at 1.2 s ``you`` is active."""
    assert three_words.active_word(1.2).text == "you"
    assert three_words.active_word(1.1999).text == "there"


@pytest.mark.parametrize(
    "t, expected",
    [(-0.1, None), (0.0, "hi"), (0.49, "hi"), (0.5, None), (0.6, "there"), (1.79, "you"), (1.8, None), (9.0, None)],
)
def test_active_word_scan(three_words: TranscriptIndex, t: float, expected: str | None) -> None:
    word = three_words.active_word(t)
    assert (word.text if word else None) == expected


def test_active_word_matches_linear_scan(three_words: TranscriptIndex) -> None:
    for step in range(-5, 200):
        t = step / 100
        hits = [w for w in three_words.words if w.start <= t < w.end]
        assert three_words.active_word(t) == (hits[0] if hits else None)


def test_words_in_range(three_words: TranscriptIndex) -> None:
    assert _texts(three_words.words_in_range(0.0, 2.0)) == ["hi", "there", "you"]
    assert _texts(three_words.words_in_range(0.52, 0.58)) == []
    assert _texts(three_words.words_in_range(0.4, 0.7)) == ["hi", "there"]
    # A word ending exactly at t0 no longer overlaps.
    assert _texts(three_words.words_in_range(1.2, 1.3)) == ["you"]
    assert three_words.words_in_range(1.0, 0.5) == []


def test_build_sorts_and_drops_empty_words() -> None:
    index = TranscriptIndex.build(
        [
            Word(text="b", start=1.0, end=1.5),
            Word(text="  ", start=0.2, end=0.4),
            Word(text="a", start=0.0, end=0.5),
        ]
    )
    assert _texts(index.words) == ["a", "b"]
    assert index[1].text == "b"
    assert index.index_of(index.words[1]) == 1


def test_overlapping_words_first_start_wins() -> None:
    index = TranscriptIndex.build(
        [
            Word(text="long", start=0.0, end=1.0),
            Word(text="late", start=0.8, end=1.4),
            Word(text="nested", start=0.2, end=0.4),
        ]
    )
    assert index.active_word(0.3).text == "long"
    assert index.active_word(0.9).text == "long"
    assert index.active_word(1.0).text == "late"
    # Covered words are still listed for display.
    assert _texts(index.words_in_range(0.25, 0.3)) == ["long", "nested"]
    assert _texts(index.words_in_range(0.5, 0.6)) == ["long"]


def test_empty_index() -> None:
    index = TranscriptIndex.build([])
    assert len(index) == 0
    assert index.active_word(0.0) is None
    assert index.words_in_range(0.0, 10.0) == []
    assert index.last_started_index(1.0) is None


def test_last_started_index(three_words: TranscriptIndex) -> None:
    assert three_words.last_started_index(0.55) == 0
    assert three_words.last_started_index(1.2) == 2


def test_word_validation() -> None:
    with pytest.raises(ValidationError):
        Word(text="x", start=1.0, end=0.5)
    with pytest.raises(ValidationError):
        Word(text="x", start=-0.1, end=0.5)
    word = Word(text="x", start=0.5, end=0.75)
    assert word.duration == 0.25
