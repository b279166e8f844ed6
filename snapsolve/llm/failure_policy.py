"""Failure classification policy for provider attempts.

Responsibilities:
- Hold the single free-text rate-limit heuristic used for both HTTP and transport failures.
- Map HTTP status codes to terminal error categories.

Notes:
- Text matching is brittle across provider message-format changes. Status codes are
  consulted first and text is only a fallback.
"""

from __future__ import annotations

from ..errors import (
    AuthError,
    BadRequestError,
    DispatchError,
    RateLimitError,
    ServerError,
    UpstreamHTTPError,
)

_RATE_LIMIT_PHRASES = (
    "rate limit",
    "rate-limit",
    "rate_limit",
    "ratelimit",
    "too many requests",
    "resource_exhausted",
    "resource has been exhausted",
    "quota exceeded",
)

_HEADLINES: dict[type[DispatchError], str] = {
    RateLimitError: "Rate limit reached",
    BadRequestError: "Bad request",
    AuthError: "Authentication failed",
    ServerError: "Server error",
    UpstreamHTTPError: "Request failed",
}


def is_rate_limit_message(text: object) -> bool:
    """Return whether free text reads like a provider rate-limit signal."""

    if not isinstance(text, str) or not text:
        return False
    lowered = text.lower()
    return any(phrase in lowered for phrase in _RATE_LIMIT_PHRASES)


def classify_http_status(status_code: int, upstream_message: str = "") -> type[DispatchError]:
    """Return the error category for a non-success HTTP status."""

    if status_code == 429 or is_rate_limit_message(upstream_message):
        return RateLimitError
    if status_code == 400:
        return BadRequestError
    if status_code in {401, 403}:
        return AuthError
    if 500 <= status_code < 600:
        return ServerError
    return UpstreamHTTPError


def headline_for(error_type: type[DispatchError]) -> str:
    """Return the user-facing headline for an HTTP error category."""

    return _HEADLINES.get(error_type, "Request failed")
