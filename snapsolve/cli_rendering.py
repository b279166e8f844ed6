"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics
and provider listings.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import CommandStageError, DispatchError
from .provider_factory import ProviderSpec


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, CommandStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)

    hint = exc.hint if isinstance(exc, CommandStageError | DispatchError) else None
    if hint:
        typer.secho(f"Hint: {hint}", fg=typer.colors.YELLOW, err=True)
    raise typer.Exit(code=1) from exc


def echo_provider_row(spec: ProviderSpec, key_count: int) -> None:
    """Print one provider row with default model and configured key count only."""

    plural_name, singular_name = spec.key_source_names
    typer.echo(
        f"{spec.provider_id}: model={spec.default_model} keys={key_count} "
        f"sources={plural_name},{singular_name}"
    )
