"""Domain exceptions for dispatch diagnostics.

Responsibilities:
- Define one terminal exception type per failure category.
- Carry structured metadata (provider, status, key position) for callers and logs.
- Render a concise human-readable diagnostic for the presentation layer.

Key types:
- `DispatchError`: base class for every terminal dispatch failure.
- `ValidationError`, `AuthError`, `RateLimitError`, `BadRequestError`, `ServerError`,
  `UpstreamHTTPError`, `DeadlineExceededError`, `TransportError`,
  `InvalidResponseError`: concrete failure categories.
- `CommandStageError`: CLI-side failures raised before any dispatch.
"""

from __future__ import annotations


class DispatchError(RuntimeError):
    """Raised when a dispatch call terminates without extracted text."""

    failure_kind = "unknown"

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        key_position: int | None = None,
        key_count: int | None = None,
        upstream_message: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize dispatch error metadata for stage-aware diagnostics."""

        super().__init__(message)
        self.detail = message
        self.provider = provider
        self.status_code = status_code
        self.key_position = key_position
        self.key_count = key_count
        self.upstream_message = upstream_message
        self.hint = hint


class ValidationError(DispatchError):
    """Raised before any network access when call input or credentials are unusable."""

    failure_kind = "validation"


class AuthError(DispatchError):
    """Raised when the provider rejects the credential (HTTP 401/403)."""

    failure_kind = "auth"


class RateLimitError(DispatchError):
    """Raised when the provider throttles the credential and no keys remain."""

    failure_kind = "rate_limit"


class BadRequestError(DispatchError):
    """Raised when the provider rejects the request payload (HTTP 400)."""

    failure_kind = "bad_request"


class ServerError(DispatchError):
    """Raised when the provider fails server-side (HTTP 5xx)."""

    failure_kind = "server"


class UpstreamHTTPError(DispatchError):
    """Raised for non-success statuses outside the named categories."""

    failure_kind = "http_error"


class DeadlineExceededError(DispatchError):
    """Raised when the call-wide deadline fires or the call is cancelled."""

    failure_kind = "timeout"


class TransportError(DispatchError):
    """Raised when the request fails below HTTP (DNS, connection reset, TLS)."""

    failure_kind = "transport"


class InvalidResponseError(DispatchError):
    """Raised when a successful response carries no extractable text."""

    failure_kind = "invalid_response"


def format_diagnostic(
    headline: str,
    *,
    provider: str | None = None,
    status_code: int | None = None,
    key_position: int | None = None,
    key_count: int | None = None,
    upstream_message: str | None = None,
) -> str:
    """Render a one-line diagnostic such as `Headline (gemini, HTTP 401, key 1/2): detail`."""

    qualifiers: list[str] = []
    if provider:
        qualifiers.append(provider)
    if status_code is not None:
        qualifiers.append(f"HTTP {status_code}")
    if key_position is not None and key_count is not None:
        qualifiers.append(f"key {key_position}/{key_count}")

    text = headline
    if qualifiers:
        text = f"{text} ({', '.join(qualifiers)})"
    if upstream_message:
        return f"{text}: {upstream_message}"
    return f"{text}."


class CommandStageError(RuntimeError):
    """Raised when a CLI command fails before dispatching (config, input files)."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped command error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
