"""Command-line interface for SnapSolve.

Responsibilities:
- Expose user-facing commands for dispatching screenshots and inspecting providers.
- Convert CLI arguments into runtime config and credential pools.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml

from .cli_rendering import echo_provider_row, exit_with_command_error
from .config import (
    ConfigLoader,
    DispatchRuntimeConfig,
    RuntimeConfigSources,
    SnapsolveConfig,
    load_environment,
)
from .credentials import CredentialPool
from .dispatcher import Dispatcher
from .errors import CommandStageError, DispatchError
from .provider_factory import PROVIDER_SPECS
from .telemetry.logger import DispatchLogger, configure_logging

app = typer.Typer(
    name="snapsolve",
    no_args_is_help=True,
    help="SnapSolve CLI.",
)


def _load_yaml_config(config_path: Path | None) -> SnapsolveConfig:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return SnapsolveConfig()

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise CommandStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except yaml.YAMLError as exc:
        raise CommandStageError(
            stage="config",
            detail=f"Failed to parse config file `{config_path}`: {exc}",
            hint="Verify YAML syntax.",
        ) from exc
    except ValueError as exc:
        raise CommandStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc


def _resolve_runtime(
    base_config: SnapsolveConfig,
    env: dict[str, str],
    cli_values: dict[str, str | None],
) -> DispatchRuntimeConfig:
    """Resolve runtime settings from CLI values, environment, and config file."""

    runtime_cli_values = {key: value for key, value in cli_values.items() if value is not None}
    try:
        return base_config.resolved_runtime(
            RuntimeConfigSources(cli=runtime_cli_values, env=env)
        )
    except ValueError as exc:
        raise CommandStageError(
            stage="config",
            detail=str(exc),
            hint="Check `--provider`/`--timeout` values and `SNAPSOLVE_*` variables.",
        ) from exc


def _read_images(paths: list[Path], max_images: int) -> list[bytes]:
    """Read PNG files in argument order, enforcing the capture stack capacity."""

    if len(paths) > max_images:
        raise CommandStageError(
            stage="input",
            detail=f"Maximum {max_images} screenshots allowed.",
            hint="Pass fewer images or raise `max_images` in config.",
        )
    images: list[bytes] = []
    for path in paths:
        try:
            images.append(path.read_bytes())
        except OSError as exc:
            raise CommandStageError(
                stage="input",
                detail=f"Failed to read screenshot `{path}`: {exc.strerror or exc}",
                hint="Verify the image path exists and is readable.",
            ) from exc
    return images


@app.command("solve")
def solve_command(
    images: Annotated[
        list[Path],
        typer.Argument(help="PNG screenshots, in the order they should be read."),
    ],
    language: Annotated[
        str | None, typer.Option("--language", "-l", help="Target language label.")
    ] = None,
    mode: Annotated[
        str | None, typer.Option("--mode", help="Prompt mode: `code` or `mcq`.")
    ] = None,
    provider: Annotated[
        str | None,
        typer.Option("--provider", help="gemini, openai, anthropic, or openrouter."),
    ] = None,
    model: Annotated[
        str | None, typer.Option("--model", help="Model override for the provider.")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option("--timeout", help="Call-wide deadline in seconds.")
    ] = None,
    config_file: Annotated[
        Path | None, typer.Option("--config", help="Optional YAML config path.")
    ] = None,
    env_file: Annotated[
        Path, typer.Option("--env-file", help="Optional `.env` file with API keys.")
    ] = Path(".env"),
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log dispatch attempts to stderr.")
    ] = False,
) -> None:
    """Dispatch screenshots to a provider and print the extracted answer."""

    configure_logging(verbose)
    try:
        env = load_environment(env_file)
        runtime = _resolve_runtime(
            _load_yaml_config(config_file),
            env,
            {
                "provider": provider,
                "model": model,
                "language": language,
                "prompt_mode": mode,
                "timeout_seconds": None if timeout is None else str(timeout),
            },
        )
        image_blobs = _read_images(images, runtime.max_images)
        dispatcher = Dispatcher(
            CredentialPool.from_env(env),
            timeout_seconds=runtime.timeout_seconds,
            logger=DispatchLogger(),
        )
        text = dispatcher.dispatch(
            image_blobs,
            runtime.language,
            mode=runtime.prompt_mode,
            provider=runtime.provider,
            model=runtime.model,
        )
    except (CommandStageError, DispatchError) as exc:
        exit_with_command_error("solve", exc)

    typer.echo(text)


@app.command("providers")
def providers_command(
    env_file: Annotated[
        Path, typer.Option("--env-file", help="Optional `.env` file with API keys.")
    ] = Path(".env"),
) -> None:
    """List supported providers with default models and configured key counts."""

    pool = CredentialPool.from_env(load_environment(env_file))
    for provider_id in sorted(PROVIDER_SPECS):
        echo_provider_row(PROVIDER_SPECS[provider_id], pool.key_count(provider_id))


def main() -> None:
    """Run the SnapSolve Typer application."""

    app()
