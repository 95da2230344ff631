"""Unit tests for centralized logging configuration."""

from __future__ import annotations

import logging
import os
import sys
import types
import warnings
from pathlib import Path

import pytest

from wavescope.utils import logging_config


@pytest.fixture
def basic_config_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, object]]:
    calls: list[dict[str, object]] = []

    def fake_basic_config(**kwargs: object) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(logging, "basicConfig", fake_basic_config)
    monkeypatch.delenv("NEMO_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TRANSFORMERS_VERBOSITY", raising=False)
    return calls


def test_configure_logging_default(basic_config_calls: list[dict[str, object]]) -> None:
    """Default logging config should set INFO and keep ASR libraries quiet."""
    logging_config.configure_logging(log_file=None)

    assert basic_config_calls[0]["level"] == logging.INFO
    assert basic_config_calls[0]["force"] is True
    assert os.environ["NEMO_LOG_LEVEL"] == "ERROR"
    assert os.environ["TRANSFORMERS_VERBOSITY"] == "error"
    assert logging.getLogger("numba").level == logging.WARNING


def test_configure_logging_verbose(basic_config_calls: list[dict[str, object]]) -> None:
    """Verbose mode should set DEBUG and bump dependency verbosity."""
    logging_config.configure_logging(verbose=True, log_file=None)

    assert basic_config_calls[0]["level"] == logging.DEBUG
    assert os.environ["NEMO_LOG_LEVEL"] == "INFO"
    assert os.environ["TRANSFORMERS_VERBOSITY"] == "info"


def test_configure_logging_quiet(
    monkeypatch: pytest.MonkeyPatch, basic_config_calls: list[dict[str, object]]
) -> None:
    """Quiet mode should suppress everything but critical and disable tqdm."""
    monkeypatch.setattr(warnings, "filterwarnings", lambda *_a, **_k: None)
    tqdm_mod = types.ModuleType("tqdm")

    def tqdm(iterable: object = None, **kwargs: object) -> object:
        return kwargs

    tqdm_mod.tqdm = tqdm
    monkeypatch.setitem(sys.modules, "tqdm", tqdm_mod)

    logging_config.configure_logging(quiet=True, log_file=None)

    assert basic_config_calls[0]["level"] == logging.CRITICAL
    assert os.environ["NEMO_LOG_LEVEL"] == "ERROR"
    assert tqdm_mod.tqdm() == {"disable": True}


def test_explicit_level_wins(basic_config_calls: list[dict[str, object]]) -> None:
    logging_config.configure_logging(level="WARNING", verbose=True, log_file=None)
    assert basic_config_calls[0]["level"] == logging.WARNING


def test_log_file_handler(basic_config_calls: list[dict[str, object]], tmp_path: Path) -> None:
    log_file = tmp_path / "wavescope.log"
    logging_config.configure_logging(log_file=str(log_file))

    handlers = basic_config_calls[0]["handlers"]
    assert isinstance(handlers, list)
    file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    assert Path(file_handlers[0].baseFilename) == log_file
    for handler in handlers:
        handler.close()


def test_live_nemo_logger_is_updated(
    monkeypatch: pytest.MonkeyPatch, basic_config_calls: list[dict[str, object]]
) -> None:
    levels: list[int] = []
    nemo_utils = types.SimpleNamespace(logging=types.SimpleNamespace(set_verbosity=levels.append))
    monkeypatch.setitem(sys.modules, "nemo.utils", nemo_utils)

    logging_config.configure_logging(verbose=True, log_file=None)
    assert levels == [logging.INFO]
