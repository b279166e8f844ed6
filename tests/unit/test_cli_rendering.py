"""Unit tests for CLI output and error rendering helpers."""

from __future__ import annotations

import pytest
import typer

from snapsolve.cli_rendering import echo_provider_row, exit_with_command_error
from snapsolve.errors import CommandStageError, RateLimitError
from snapsolve.provider_factory import PROVIDER_SPECS


def test_exit_with_command_error_renders_stage_error_with_hint(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print stage diagnostics and hint before exiting with code 1."""

    error = CommandStageError(
        stage="input",
        detail="Failed to read screenshot `missing.png`: No such file or directory",
        hint="Verify the image path exists and is readable.",
    )

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("solve", error)

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "solve failed at stage `input`" in captured.err
    assert "Hint: Verify the image path exists and is readable." in captured.err


def test_exit_with_command_error_renders_dispatch_error_with_hint(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Dispatch failures should print their diagnostic and hint."""

    error = RateLimitError(
        "Rate limit reached (gemini, HTTP 429, key 2/2): Quota exceeded",
        hint="All keys are throttled; add keys to `GEMINI_API_KEYS` or wait before retrying.",
    )

    with pytest.raises(typer.Exit):
        exit_with_command_error("solve", error)

    captured = capsys.readouterr()
    assert "solve failed: Rate limit reached (gemini, HTTP 429, key 2/2)" in captured.err
    assert "Hint: All keys are throttled" in captured.err


def test_exit_with_command_error_renders_generic_fallback(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print fallback exception text for unexpected failures."""

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("providers", RuntimeError("unexpected registry error"))

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "providers failed: unexpected registry error" in captured.err
    assert "Hint:" not in captured.err


def test_echo_provider_row_prints_counts_not_keys(capsys: pytest.CaptureFixture[str]) -> None:
    """Provider rows should expose key counts and configuration names only."""

    echo_provider_row(PROVIDER_SPECS["openai"], 2)

    assert capsys.readouterr().out == (
        "openai: model=gpt-4o-mini keys=2 sources=OPENAI_API_KEYS,OPENAI_API_KEY\n"
    )
