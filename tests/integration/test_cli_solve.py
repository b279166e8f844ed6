"""CLI integration tests for the `solve` and `providers` commands."""

from __future__ import annotations

from pathlib import Path

from pytest import MonkeyPatch
from typer.testing import CliRunner

from snapsolve.cli import app
from tests.http_mocks import ScriptedPost, gemini_text_response, json_response

_POST_TARGET = "snapsolve.llm.http_client.requests.post"


def _write_png(tmp_path: Path, name: str = "shot.png") -> Path:
    path = tmp_path / name
    path.write_bytes(b"\x89PNG\r\n\x1a\nplaceholder")
    return path


def test_solve_prints_extracted_text(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """Solve should dispatch the screenshot and print the answer on stdout."""

    post = ScriptedPost(gemini_text_response("def solve(): return 42"))
    monkeypatch.setattr(_POST_TARGET, post)
    monkeypatch.setenv("GEMINI_API_KEY", "g-secret")
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "solve",
            str(_write_png(tmp_path)),
            "--language",
            "Python",
            "--env-file",
            str(tmp_path / "missing.env"),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "def solve(): return 42" in result.output
    assert post.sent_keys == ["g-secret"]


def test_solve_reads_keys_from_env_file_and_honors_provider_option(
    monkeypatch: MonkeyPatch, tmp_path: Path
) -> None:
    """Keys from `--env-file` should feed the selected provider's pool."""

    post = ScriptedPost(json_response({"choices": [{"message": {"content": "B"}}]}))
    monkeypatch.setattr(_POST_TARGET, post)
    env_file = tmp_path / ".env"
    env_file.write_text("OPENAI_API_KEYS=sk-a,sk-b\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "solve",
            str(_write_png(tmp_path)),
            "--provider",
            "openai",
            "--mode",
            "mcq",
            "--model",
            "gpt-4o",
            "--env-file",
            str(env_file),
        ],
    )

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "B"
    assert post.sent_keys == ["sk-a"]
    assert post.calls[0]["json"]["model"] == "gpt-4o"


def test_solve_reports_missing_keys_with_hint(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """Missing credentials should fail with exit code 1 and name both key sources."""

    post = ScriptedPost()
    monkeypatch.setattr(_POST_TARGET, post)
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["solve", str(_write_png(tmp_path)), "--env-file", str(tmp_path / "missing.env")],
    )

    assert result.exit_code == 1
    assert "solve failed: Missing API key for gemini" in result.output
    assert "GEMINI_API_KEYS" in result.output
    assert "Hint:" in result.output
    assert post.calls == []


def test_solve_reports_missing_image_as_input_stage_error(tmp_path: Path) -> None:
    """Unreadable screenshots should fail at the `input` stage."""

    runner = CliRunner()

    result = runner.invoke(
        app,
        ["solve", str(tmp_path / "nope.png"), "--env-file", str(tmp_path / "missing.env")],
    )

    assert result.exit_code == 1
    assert "solve failed at stage `input`" in result.output
    assert "nope.png" in result.output


def test_solve_rejects_more_images_than_capacity(tmp_path: Path) -> None:
    """Passing more screenshots than `max_images` should fail before dispatching."""

    config_path = tmp_path / "snapsolve.yml"
    config_path.write_text("max_images: 1\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "solve",
            str(_write_png(tmp_path, "a.png")),
            str(_write_png(tmp_path, "b.png")),
            "--config",
            str(config_path),
            "--env-file",
            str(tmp_path / "missing.env"),
        ],
    )

    assert result.exit_code == 1
    assert "Maximum 1 screenshots allowed." in result.output


def test_solve_reports_missing_config_file(tmp_path: Path) -> None:
    """A missing `--config` path should fail with stage-aware diagnostics."""

    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "solve",
            str(_write_png(tmp_path)),
            "--config",
            str(tmp_path / "absent.yml"),
            "--env-file",
            str(tmp_path / "missing.env"),
        ],
    )

    assert result.exit_code == 1
    assert "solve failed at stage `config`" in result.output
    assert "Config file not found" in result.output


def test_solve_rejects_unknown_provider_option(tmp_path: Path) -> None:
    """Explicit provider options outside the registry should fail at config stage."""

    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "solve",
            str(_write_png(tmp_path)),
            "--provider",
            "mistral",
            "--env-file",
            str(tmp_path / "missing.env"),
        ],
    )

    assert result.exit_code == 1
    assert "Unsupported `provider` value `mistral`" in result.output


def test_solve_applies_environment_settings_below_cli_options(
    monkeypatch: MonkeyPatch, tmp_path: Path
) -> None:
    """`SNAPSOLVE_*` variables should apply unless a CLI option overrides them."""

    post = ScriptedPost(json_response({"content": [{"type": "text", "text": "done"}]}))
    monkeypatch.setattr(_POST_TARGET, post)
    monkeypatch.setenv("SNAPSOLVE_PROVIDER", "anthropic")
    monkeypatch.setenv("SNAPSOLVE_LANGUAGE", "Haskell")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "a-secret")
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "solve",
            str(_write_png(tmp_path)),
            "--language",
            "OCaml",
            "--env-file",
            str(tmp_path / "missing.env"),
        ],
    )

    assert result.exit_code == 0, result.output
    prompt = post.calls[0]["json"]["messages"][0]["content"][-1]["text"]
    assert "OCaml" in prompt
    assert "Haskell" not in prompt


def test_providers_lists_counts_without_secrets(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """The providers command should show key counts and never the key values."""

    monkeypatch.setenv("GEMINI_API_KEYS", '["g-secret-1", "g-secret-2"]')
    runner = CliRunner()

    result = runner.invoke(app, ["providers", "--env-file", str(tmp_path / "missing.env")])

    assert result.exit_code == 0, result.output
    assert "gemini: model=gemini-2.5-flash keys=2" in result.output
    assert "openrouter: model=openai/gpt-4o-mini keys=0" in result.output
    assert "g-secret" not in result.output
