"""Unit tests for wavescope.models.parakeet."""

from __future__ import annotations

import sys
import types
from unittest.mock import MagicMock

import pytest

from wavescope.errors import ModelUnavailable
from wavescope.models import parakeet


def _fake_torch(cuda: bool) -> types.SimpleNamespace:
    return types.SimpleNamespace(cuda=types.SimpleNamespace(is_available=lambda: cuda))


def test_best_device(monkeypatch: pytest.MonkeyPatch) -> None:
    """Returns cuda when available, cpu otherwise."""
    monkeypatch.setitem(sys.modules, "torch", _fake_torch(True))
    assert parakeet.best_device() == "cuda"
    monkeypatch.setitem(sys.modules, "torch", _fake_torch(False))
    assert parakeet.best_device() == "cpu"


def test_best_device_without_torch(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "torch", None)
    with pytest.raises(ModelUnavailable):
        parakeet.best_device()


def test_load_model_without_nemo(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "nemo", None)
    monkeypatch.setitem(sys.modules, "nemo.collections", None)
    monkeypatch.setitem(sys.modules, "nemo.collections.asr", None)
    with pytest.raises(ModelUnavailable):
        parakeet._load_model("nvidia/parakeet-tdt-0.6b-v2")


def _install_fake_nemo(monkeypatch: pytest.MonkeyPatch, from_pretrained: MagicMock) -> None:
    asr = types.ModuleType("nemo.collections.asr")
    asr.models = types.SimpleNamespace(ASRModel=types.SimpleNamespace(from_pretrained=from_pretrained))
    collections = types.ModuleType("nemo.collections")
    collections.asr = asr
    nemo = types.ModuleType("nemo")
    nemo.collections = collections
    monkeypatch.setitem(sys.modules, "nemo", nemo)
    monkeypatch.setitem(sys.modules, "nemo.collections", collections)
    monkeypatch.setitem(sys.modules, "nemo.collections.asr", asr)
    monkeypatch.setattr(parakeet, "best_device", lambda: "cpu")


def test_load_model_moves_to_device(monkeypatch: pytest.MonkeyPatch) -> None:
    model = MagicMock()
    model.eval.return_value = model
    from_pretrained = MagicMock(return_value=model)
    _install_fake_nemo(monkeypatch, from_pretrained)

    assert parakeet._load_model("some/model") is model
    from_pretrained.assert_called_once_with("some/model")
    model.to.assert_called_once_with("cpu")


def test_load_model_failure_is_model_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_nemo(monkeypatch, MagicMock(side_effect=OSError("no such checkpoint")))
    with pytest.raises(ModelUnavailable, match="no such checkpoint"):
        parakeet._load_model("missing/model")


def test_get_model_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    loads: list[str] = []

    def fake_load(name: str) -> object:
        loads.append(name)
        return object()

    parakeet.get_model.cache_clear()
    monkeypatch.setattr(parakeet, "_load_model", fake_load)
    try:
        first = parakeet.get_model("a")
        assert parakeet.get_model("a") is first
        assert loads == ["a"]
    finally:
        parakeet.get_model.cache_clear()
