"""Structured dispatch logging utilities.

Responsibilities:
- Emit concise, deterministic per-attempt dispatch logs through `loguru`.
- Never emit credential values; only key position and count appear.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger

_COMPONENT = "snapsolve"


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
        if context[key] is not None
    ]
    if not tokens:
        return ""
    return " " + " ".join(tokens)


class DispatchLogger:
    """Emit deterministic dispatch lifecycle logs for one dispatcher instance."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Bind the component logger and optionally attach a dedicated sink."""

        self._logger = _loguru_logger.bind(component=_COMPONENT)
        self._handler_id: int | None = None
        if sink is not None:
            self._handler_id = _loguru_logger.add(
                sink,
                format="{message}",
                level=level,
                colorize=False,
                filter=lambda record: record["extra"].get("component") == _COMPONENT,
            )

    def close(self) -> None:
        """Detach the dedicated sink, if one was attached."""

        if self._handler_id is not None:
            _loguru_logger.remove(self._handler_id)
            self._handler_id = None

    def _emit(self, level: str, event: str, provider: str, **context: object) -> None:
        """Emit one structured dispatch log line."""

        line = (
            f"[dispatch] level={level} provider={provider} event={event}"
            f"{_format_context(context)}"
        )
        self._logger.log(level, line)

    def log_start(self, provider: str, model: str, key_count: int, image_count: int) -> None:
        """Emit a call-start event."""

        self._emit("INFO", "start", provider, model=model, keys=key_count, images=image_count)

    def log_attempt(self, provider: str, key_position: int, key_count: int) -> None:
        """Emit an attempt event with the 1-based key position."""

        self._emit("DEBUG", "attempt", provider, key=f"{key_position}/{key_count}")

    def log_retry(self, provider: str, key_position: int, key_count: int, reason: str) -> None:
        """Emit a rate-limit retry event before moving to the next key."""

        self._emit("WARNING", "retry", provider, key=f"{key_position}/{key_count}", reason=reason)

    def log_success(self, provider: str, key_position: int, key_count: int) -> None:
        """Emit a call-success event."""

        self._emit("INFO", "success", provider, key=f"{key_position}/{key_count}")

    def log_failure(
        self,
        provider: str,
        error_type: str,
        key_position: int | None = None,
        key_count: int | None = None,
        status: int | None = None,
    ) -> None:
        """Emit a terminal failure event without sensitive payload details."""

        key = f"{key_position}/{key_count}" if key_position is not None else None
        self._emit("ERROR", "failure", provider, error_type=error_type, key=key, status=status)


def configure_logging(verbose: bool, sink: TextIO | None = None) -> None:
    """Replace loguru handlers for CLI use; dispatch logs go to stderr only when verbose."""

    _loguru_logger.remove()
    if verbose:
        _loguru_logger.add(
            sink or sys.stderr,
            format="{message}",
            level="DEBUG",
            colorize=False,
        )
