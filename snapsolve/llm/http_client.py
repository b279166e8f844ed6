"""HTTP transport for provider attempts.

Responsibilities:
- Send one `RequestDescriptor` with requests, capped by the call-wide deadline.
- Return raw status/body without raising on HTTP failures so the dispatcher classifies them.
- Extract concise, redacted upstream error messages from failure bodies.
"""

from __future__ import annotations

import json
import re
import socket
import threading
from typing import Any, Iterable

import requests

from ..models.datatypes import RequestDescriptor, TransportResponse
from .deadline import CallDeadline

_MAX_PROVIDER_MESSAGE_CHARS = 180
_READ_CHUNK_BYTES = 256
_WATCHDOG_POLL_SECONDS = 0.05


class AttemptTimeout(RuntimeError):
    """Raised when the in-flight request is aborted by the call deadline."""


class AttemptTransportFailure(RuntimeError):
    """Raised when the request fails below the HTTP layer."""


class HttpTransport:
    """Minimal requests-based JSON POST transport used by the dispatcher.

    The body is streamed in small chunks so the call-wide deadline and caller
    cancellation are re-checked between reads. requests' own `timeout` only bounds
    the connect and each individual socket read, so a watchdog thread also shuts the
    connection down once the deadline fires, unblocking a read that is in progress.
    """

    def send(self, descriptor: RequestDescriptor, deadline: CallDeadline) -> TransportResponse:
        """POST the descriptor body and return the raw response under the deadline."""

        remaining = deadline.remaining()
        if remaining <= 0.0:
            raise AttemptTimeout("Deadline expired before the request was sent.")

        headers = {"Content-Type": "application/json", **descriptor.headers}
        try:
            response = requests.post(
                descriptor.url,
                headers=headers,
                json=descriptor.body,
                timeout=remaining,
                stream=True,
            )
        except (requests.Timeout, socket.timeout, TimeoutError) as exc:
            raise AttemptTimeout(str(exc) or "Request timed out.") from exc
        except requests.RequestException as exc:
            if deadline.expired:
                raise AttemptTimeout(str(exc) or "Request timed out.") from exc
            raise AttemptTransportFailure(short_message(str(exc))) from exc

        finished = threading.Event()
        watchdog = threading.Thread(
            target=_shutdown_when_fired,
            args=(response, deadline, finished),
            name="snapsolve-deadline-watchdog",
            daemon=True,
        )
        watchdog.start()
        try:
            content = self._read_body(response, deadline)
        finally:
            finished.set()
            response.close()

        content_type = ""
        response_headers = getattr(response, "headers", None)
        if response_headers is not None:
            content_type = str(response_headers.get("Content-Type", "") or "")
        return TransportResponse(
            status_code=int(response.status_code),
            content=content,
            content_type=content_type,
        )

    @staticmethod
    def _read_body(response: requests.Response, deadline: CallDeadline) -> bytes:
        """Read the streamed body, aborting as soon as the deadline fires."""

        chunks: list[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=_READ_CHUNK_BYTES):
                if deadline.expired:
                    raise AttemptTimeout("Deadline fired while reading the response body.")
                if chunk:
                    chunks.append(chunk)
        except (requests.Timeout, socket.timeout, TimeoutError) as exc:
            raise AttemptTimeout(str(exc) or "Request timed out.") from exc
        except requests.RequestException as exc:
            if deadline.expired:
                raise AttemptTimeout(str(exc) or "Request timed out.") from exc
            raise AttemptTransportFailure(short_message(str(exc))) from exc
        except OSError as exc:
            if deadline.expired:
                raise AttemptTimeout(str(exc) or "Request timed out.") from exc
            raise AttemptTransportFailure(short_message(str(exc))) from exc

        if deadline.expired:
            raise AttemptTimeout("Deadline fired while reading the response body.")
        return b"".join(chunks)


def _shutdown_when_fired(
    response: requests.Response, deadline: CallDeadline, finished: threading.Event
) -> None:
    """Shut the connection down once the deadline fires, unless reading finished first."""

    while not finished.wait(_WATCHDOG_POLL_SECONDS):
        if deadline.expired:
            response.raw.shutdown()
            return


def decode_json_body(response: TransportResponse) -> Any:
    """Decode a response body as JSON, raising `ValueError` on malformed payloads."""

    try:
        return json.loads(response.text())
    except json.JSONDecodeError as exc:
        raise ValueError("Response body is not valid JSON.") from exc


def redact_sensitive_tokens(text: str, secrets: Iterable[str] = ()) -> str:
    """Redact API-key-like tokens and known secrets from provider error content."""

    redacted = text
    for secret in secrets:
        if secret:
            redacted = redacted.replace(secret, "[redacted-key]")
    redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", redacted)
    redacted = re.sub(r"\bAIza[A-Za-z0-9_-]{20,}\b", "[redacted-key]", redacted)
    redacted = re.sub(
        r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
        "Bearer [redacted-token]",
        redacted,
    )
    return redacted


def short_message(text: str) -> str:
    """Normalize and cap user-facing provider message length."""

    compact = " ".join(text.split())
    if len(compact) <= _MAX_PROVIDER_MESSAGE_CHARS:
        return compact
    return f"{compact[: _MAX_PROVIDER_MESSAGE_CHARS - 3]}..."


def extract_upstream_message(response: TransportResponse, secrets: Iterable[str] = ()) -> str:
    """Extract a concise upstream message from a failure body.

    JSON bodies are consulted only when the response declares JSON; the message is
    taken from `error.message`, a string `error`, or `message`, else the raw text.
    """

    body = response.text().strip()
    if not body:
        return ""

    message: str | None = None
    if response.declares_json:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            payload = None
        message = _message_from_payload(payload)

    if message is None:
        message = body
    return short_message(redact_sensitive_tokens(message, secrets))


def _message_from_payload(payload: Any) -> str | None:
    """Return the first non-empty message found in common provider error shapes."""

    if not isinstance(payload, dict):
        return None
    error_payload = payload.get("error")
    if isinstance(error_payload, dict):
        value = error_payload.get("message")
        if isinstance(value, str) and value.strip():
            return value.strip()
    if isinstance(error_payload, str) and error_payload.strip():
        return error_payload.strip()
    value = payload.get("message")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
