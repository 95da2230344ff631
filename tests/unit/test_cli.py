"""Unit tests for the CLI entry point.

These tests validate help output, the version callback and the wiring of
options into the analysis and viewer steps without touching the terminal.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from wavescope import cli
from wavescope.errors import TerminalIOError, UnsupportedFormat

runner = CliRunner()


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / "a.wav"
    path.write_bytes(b"RIFF")
    return path


@pytest.fixture
def recorded(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
    calls: dict[str, object] = {}

    def fake_load_session(source, analysis, transcription, *, show_progress):
        calls["source"] = source
        calls["analysis"] = analysis
        calls["transcription"] = transcription
        calls["show_progress"] = show_progress
        return "session"

    def fake_run_viewer(session, display):
        calls["session"] = session
        calls["display"] = display

    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: calls.update(logging=kwargs))
    monkeypatch.setattr(cli.session, "load_session", fake_load_session)
    monkeypatch.setattr(cli.event_loop, "run_viewer", fake_run_viewer)
    return calls


def test_version_callback() -> None:
    """Ensure ``--version`` callback exits the process cleanly."""
    with pytest.raises(typer.Exit):
        cli.version_callback(True)


def test_version_flag() -> None:
    result = runner.invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert "wavescope version" in result.output


def test_help() -> None:
    result = runner.invoke(cli.app, ["--help"])
    assert result.exit_code == 0
    assert "--input" in result.output
    assert "--window-size" in result.output


def test_input_is_required() -> None:
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 2


def test_input_must_exist(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["-i", str(tmp_path / "missing.wav")])
    assert result.exit_code == 2


def test_defaults_are_wired(audio_file: Path, recorded: dict[str, object]) -> None:
    result = runner.invoke(cli.app, ["-i", str(audio_file)])

    assert result.exit_code == 0, result.output
    assert recorded["source"] == audio_file.resolve()
    assert recorded["analysis"].window_size == 1024
    assert recorded["transcription"].enabled is True
    assert recorded["session"] == "session"
    display = recorded["display"]
    assert display.scroll_mode == "scroll"
    assert display.log_frequency is True
    assert recorded["show_progress"] is True


def test_options_are_wired(audio_file: Path, recorded: dict[str, object]) -> None:
    result = runner.invoke(
        cli.app,
        [
            "--input", str(audio_file),
            "-w", "2048",
            "--hop-size", "512",
            "--scroll-mode", "overview",
            "--linear-freq",
            "--max-freq", "8000",
            "--fps", "30",
            "--model", "local.nemo",
            "--no-transcribe",
            "--quiet",
        ],
    )

    assert result.exit_code == 0, result.output
    assert recorded["analysis"].window_size == 2048
    assert recorded["analysis"].effective_hop == 512
    assert recorded["transcription"].enabled is False
    assert recorded["transcription"].model_name == "local.nemo"
    display = recorded["display"]
    assert display.scroll_mode == "overview"
    assert display.log_frequency is False
    assert display.max_frequency == 8000.0
    assert display.fps == 30.0
    assert recorded["logging"] == {"verbose": False, "quiet": True}
    assert recorded["show_progress"] is False


def test_window_must_be_power_of_two(audio_file: Path, recorded: dict[str, object]) -> None:
    result = runner.invoke(cli.app, ["-i", str(audio_file), "-w", "1000"])

    assert result.exit_code == 1
    assert "power of two" in result.output
    assert "source" not in recorded


@pytest.mark.parametrize("error", [UnsupportedFormat("cannot decode"), TerminalIOError("not a tty")])
def test_errors_exit_nonzero(
    monkeypatch: pytest.MonkeyPatch,
    audio_file: Path,
    recorded: dict[str, object],
    error: Exception,
) -> None:
    def fail(*_args, **_kwargs):
        raise error

    monkeypatch.setattr(cli.event_loop, "run_viewer", fail)
    result = runner.invoke(cli.app, ["-i", str(audio_file)])

    assert result.exit_code == 1
    assert str(error) in result.output
