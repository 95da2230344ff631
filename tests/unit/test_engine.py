"""Unit tests for the transcription engine with a stand-in ASR model."""

from __future__ import annotations

import contextlib
import sys
import types

import numpy as np
import pytest

from wavescope.config import TranscriptionConfig
from wavescope.errors import ModelUnavailable
from wavescope.transcript import engine


class _Tokenizer:
    mapping = {0: "▁hello", 1: "▁world"}

    def ids_to_tokens(self, ids):
        return [self.mapping[i] for i in ids]

    def ids_to_text(self, ids):
        return "".join(self.mapping[i] for i in ids)


class _Hypo:
    def __init__(self, ids, frames):
        self.y_sequence = np.array(ids)
        self.timestamp = np.array(frames)


class _FakeModel:
    def __init__(self, fail: type[Exception] | None = None) -> None:
        self.cfg = types.SimpleNamespace(preprocessor=types.SimpleNamespace(window_stride=0.01))
        self.encoder = types.SimpleNamespace(subsampling_factor=8)
        self.tokenizer = _Tokenizer()
        self.fail = fail
        self.calls: list[int] = []

    def transcribe(self, audio, batch_size, return_hypotheses, verbose):
        assert return_hypotheses is True
        if self.fail is not None:
            raise self.fail("HIP out of memory")
        self.calls.append(len(audio))
        return [_Hypo([0, 1], [0, 5]) for _ in audio]


@pytest.fixture
def fake_torch(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(
        sys.modules, "torch", types.SimpleNamespace(inference_mode=contextlib.nullcontext)
    )


def test_transcribe_returns_timed_words(monkeypatch: pytest.MonkeyPatch, fake_torch: None) -> None:
    model = _FakeModel()
    monkeypatch.setattr(engine, "get_model", lambda _name: model)

    words = engine.transcribe(np.zeros(16_000, dtype=np.float32), 16_000)

    assert model.calls == [1]
    assert [w.text for w in words] == ["hello", "world"]
    assert words[1].start == pytest.approx(0.4)
    assert words[1].end == pytest.approx(0.48)


def test_transcribe_offsets_chunks(monkeypatch: pytest.MonkeyPatch, fake_torch: None) -> None:
    model = _FakeModel()
    monkeypatch.setattr(engine, "get_model", lambda _name: model)
    config = TranscriptionConfig(batch_size=2, chunk_len_sec=2, overlap_sec=1)

    words = engine.transcribe(np.zeros(16_000 * 4, dtype=np.float32), 16_000, config)

    # Chunks start at 0, 1, 2 s; batches of two.
    assert model.calls == [2, 1]
    assert [w.start for w in words if w.text == "hello"] == pytest.approx([0.0, 1.0, 2.0])


def test_transcribe_empty_audio_skips_model(monkeypatch: pytest.MonkeyPatch) -> None:
    def no_model(_name: str):
        raise AssertionError("model must not be loaded")

    monkeypatch.setattr(engine, "get_model", no_model)
    assert engine.transcribe(np.zeros(0, dtype=np.float32), 16_000) == []


@pytest.mark.parametrize("error", [RuntimeError, ValueError, TypeError])
def test_transcribe_inference_failure(
    monkeypatch: pytest.MonkeyPatch, fake_torch: None, error: type[Exception]
) -> None:
    monkeypatch.setattr(engine, "get_model", lambda _name: _FakeModel(fail=error))
    with pytest.raises(ModelUnavailable):
        engine.transcribe(np.zeros(1600, dtype=np.float32), 16_000)


def test_transcribe_resamples_to_model_rate(
    monkeypatch: pytest.MonkeyPatch, fake_torch: None
) -> None:
    seen: dict[str, int] = {}

    def fake_resample(audio, orig_sr, target_sr, dtype):
        seen["orig_sr"], seen["target_sr"] = orig_sr, target_sr
        return np.zeros(int(audio.size * target_sr / orig_sr), dtype=dtype)

    monkeypatch.setattr(engine.librosa, "resample", fake_resample)
    monkeypatch.setattr(engine, "get_model", lambda _name: _FakeModel())

    engine.transcribe(np.zeros(44_100, dtype=np.float32), 44_100)
    assert seen == {"orig_sr": 44_100, "target_sr": 16_000}


def test_calc_time_stride_defaults() -> None:
    model = types.SimpleNamespace(
        cfg=types.SimpleNamespace(), encoder=types.SimpleNamespace(subsampling_factor=4)
    )
    assert engine.calc_time_stride(model) == pytest.approx(0.04)
