"""Outbound inference-request dispatcher.

Responsibilities:
- Validate call input and resolve provider, prompt mode, model, and credential pool.
- Pick a fair starting credential and walk the pool sequentially under one deadline.
- Retry with the next credential only on rate-limit signals; every other failure is terminal.
- Collapse every failure path into exactly one classified `DispatchError`.

Key types:
- `Dispatcher`: long-lived instance owning the rotation cursor and transport.
"""

from __future__ import annotations

from time import monotonic
from typing import Callable, Iterable

from .credentials import CredentialPool, RotationCursor
from .errors import (
    DeadlineExceededError,
    DispatchError,
    InvalidResponseError,
    RateLimitError,
    TransportError,
    ValidationError,
    format_diagnostic,
)
from .llm.adapters import ProviderAdapter
from .llm.deadline import CallDeadline
from .llm.failure_policy import classify_http_status, headline_for, is_rate_limit_message
from .llm.http_client import (
    AttemptTimeout,
    AttemptTransportFailure,
    HttpTransport,
    decode_json_body,
    extract_upstream_message,
    redact_sensitive_tokens,
)
from .llm.prompts import PromptLibrary, resolve_mode
from .models.datatypes import AttemptOutcome, ImageBlob, PromptPayload
from .parsing import normalize_optional_string
from .provider_factory import ProviderFactory, ProviderSpec, resolve_provider
from .telemetry.logger import DispatchLogger

DEFAULT_TIMEOUT_SECONDS = 60.0


class Dispatcher:
    """Dispatch captured images to one provider with key rotation and a shared deadline."""

    def __init__(
        self,
        credential_pool: CredentialPool,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: HttpTransport | None = None,
        logger: DispatchLogger | None = None,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        """Initialize dependencies; the rotation cursor lives as long as this instance."""

        if timeout_seconds <= 0.0:
            raise ValueError("`timeout_seconds` must be a positive number.")
        self.credential_pool = credential_pool
        self.timeout_seconds = timeout_seconds
        self.transport = transport if transport is not None else HttpTransport()
        self.logger = logger if logger is not None else DispatchLogger()
        self.clock = clock
        self.rotation = RotationCursor()
        self.prompts = PromptLibrary()

    def dispatch(
        self,
        images: Iterable[ImageBlob] | None,
        language: str,
        *,
        mode: object = None,
        provider: object = None,
        model: str | None = None,
        deadline: CallDeadline | None = None,
    ) -> str:
        """Return extracted text for the images, or raise one classified `DispatchError`.

        Args:
            images: Non-empty ordered image blobs.
            language: Target language label injected into the prompt.
            mode: Prompt mode selector; unrecognized values fall back to `code`.
            provider: Provider selector; unrecognized values fall back to `gemini`.
            model: Optional explicit model overriding the provider default.
            deadline: Optional caller-owned token, for cancellation from another thread.
                When omitted, a deadline of `timeout_seconds` is armed for this call.
        """

        image_list = tuple(images) if images is not None else ()
        if not image_list:
            raise ValidationError(
                format_diagnostic("No screenshots to process"),
                hint="Capture at least one screenshot before dispatching.",
            )

        provider_id = resolve_provider(provider)
        spec = ProviderFactory.spec(provider_id)
        prompt_mode = resolve_mode(mode)
        model_id = normalize_optional_string(model) or spec.default_model

        keys = self.credential_pool.keys_for(provider_id)
        if not keys:
            plural_name, singular_name = spec.key_source_names
            error = ValidationError(
                f"Missing API key for {provider_id}. "
                f"Set `{plural_name}` or `{singular_name}`.",
                provider=provider_id,
                key_count=0,
                hint=(
                    f"Put one or more keys in `{plural_name}` (JSON array or comma-separated) "
                    f"or a single key in `{singular_name}`."
                ),
            )
            self.logger.log_failure(provider_id, error.failure_kind)
            raise error

        key_count = len(keys)
        start = self.rotation.next_start(provider_id, key_count)
        payload = PromptPayload(
            images=image_list,
            prompt_text=self.prompts.compose(language, prompt_mode),
        )
        adapter = ProviderFactory.create_adapter(provider_id)
        call_deadline = (
            deadline
            if deadline is not None
            else CallDeadline(self.timeout_seconds, clock=self.clock)
        )
        self.logger.log_start(provider_id, model_id, key_count, len(image_list))

        retained: DispatchError | None = None
        for offset in range(key_count):
            index = (start + offset) % key_count
            position = index + 1
            keys_remain = offset < key_count - 1
            outcome = self._attempt(
                spec=spec,
                adapter=adapter,
                model=model_id,
                credential=keys[index],
                payload=payload,
                deadline=call_deadline,
                key_position=position,
                key_count=key_count,
                keys_remain=keys_remain,
            )
            if outcome.kind == AttemptOutcome.SUCCESS and outcome.text is not None:
                self.logger.log_success(provider_id, position, key_count)
                return outcome.text

            error = outcome.error
            if error is None:
                error = InvalidResponseError(
                    format_diagnostic("Invalid response format", provider=provider_id),
                    provider=provider_id,
                )
            if outcome.kind == AttemptOutcome.RETRYABLE and keys_remain:
                retained = error
                self.logger.log_retry(provider_id, position, key_count, error.failure_kind)
                continue

            self.logger.log_failure(
                provider_id, error.failure_kind, position, key_count, error.status_code
            )
            raise error

        if retained is not None:
            raise retained
        raise DispatchError(
            format_diagnostic("All configured keys failed", provider=provider_id),
            provider=provider_id,
            key_count=key_count,
        )

    def _attempt(
        self,
        *,
        spec: ProviderSpec,
        adapter: ProviderAdapter,
        model: str,
        credential: str,
        payload: PromptPayload,
        deadline: CallDeadline,
        key_position: int,
        key_count: int,
        keys_remain: bool,
    ) -> AttemptOutcome:
        """Issue one request with one credential and classify the outcome.

        Transport failures that read like throttling are retryable only while untried
        keys remain; on the last key they surface as `TransportError`.
        """

        provider_id = spec.provider_id
        if deadline.expired:
            return AttemptOutcome.fatal(
                self._timeout_error(provider_id, key_position, key_count, deadline)
            )

        descriptor = adapter.build_request(model, credential, payload)
        self.logger.log_attempt(provider_id, key_position, key_count)
        try:
            response = self.transport.send(descriptor, deadline)
        except AttemptTimeout:
            return AttemptOutcome.fatal(
                self._timeout_error(provider_id, key_position, key_count, deadline)
            )
        except AttemptTransportFailure as exc:
            message = redact_sensitive_tokens(str(exc), (credential,))
            if keys_remain and is_rate_limit_message(message):
                return AttemptOutcome.retryable(
                    RateLimitError(
                        format_diagnostic(
                            "Rate limit reached",
                            provider=provider_id,
                            key_position=key_position,
                            key_count=key_count,
                            upstream_message=message,
                        ),
                        provider=provider_id,
                        key_position=key_position,
                        key_count=key_count,
                        upstream_message=message,
                        hint=self._rate_limit_hint(spec),
                    )
                )
            return AttemptOutcome.fatal(
                TransportError(
                    format_diagnostic(
                        "Network error",
                        provider=provider_id,
                        key_position=key_position,
                        key_count=key_count,
                        upstream_message=message,
                    ),
                    provider=provider_id,
                    key_position=key_position,
                    key_count=key_count,
                    upstream_message=message,
                    hint="Check network connectivity and provider availability.",
                )
            )

        if deadline.expired:
            return AttemptOutcome.fatal(
                self._timeout_error(provider_id, key_position, key_count, deadline)
            )

        if not response.ok:
            upstream = extract_upstream_message(response, (credential,))
            error_type = classify_http_status(response.status_code, upstream)
            error = error_type(
                format_diagnostic(
                    headline_for(error_type),
                    provider=provider_id,
                    status_code=response.status_code,
                    key_position=key_position,
                    key_count=key_count,
                    upstream_message=upstream,
                ),
                provider=provider_id,
                status_code=response.status_code,
                key_position=key_position,
                key_count=key_count,
                upstream_message=upstream or None,
                hint=self._http_hint(spec, error_type),
            )
            if error_type is RateLimitError:
                return AttemptOutcome.retryable(error)
            return AttemptOutcome.fatal(error)

        try:
            body = decode_json_body(response)
        except ValueError:
            body = None
        text = descriptor.extractor(body) if body is not None else None
        normalized = text.strip() if isinstance(text, str) else ""
        if not normalized:
            return AttemptOutcome.fatal(
                InvalidResponseError(
                    format_diagnostic(
                        "Invalid response format",
                        provider=provider_id,
                        status_code=response.status_code,
                        key_position=key_position,
                        key_count=key_count,
                        upstream_message="no generated text in response",
                    ),
                    provider=provider_id,
                    status_code=response.status_code,
                    key_position=key_position,
                    key_count=key_count,
                )
            )
        return AttemptOutcome.success(normalized)

    def _timeout_error(
        self, provider_id: str, key_position: int, key_count: int, deadline: CallDeadline
    ) -> DeadlineExceededError:
        """Build the terminal deadline error for a call."""

        return DeadlineExceededError(
            format_diagnostic(
                "Request timed out",
                provider=provider_id,
                key_position=key_position,
                key_count=key_count,
                upstream_message=f"no response within {deadline.timeout_seconds:g}s",
            ),
            provider=provider_id,
            key_position=key_position,
            key_count=key_count,
            hint="Increase the timeout or retry when the provider is less busy.",
        )

    @staticmethod
    def _rate_limit_hint(spec: ProviderSpec) -> str:
        """Return an actionable hint for exhausted rate-limited pools."""

        return (
            f"All keys are throttled; add keys to `{spec.plural_key_name}` "
            "or wait before retrying."
        )

    @classmethod
    def _http_hint(cls, spec: ProviderSpec, error_type: type[DispatchError]) -> str | None:
        """Return an actionable hint for an HTTP failure category."""

        if error_type is RateLimitError:
            return cls._rate_limit_hint(spec)
        if error_type.failure_kind == "auth":
            return (
                f"Verify the keys in `{spec.plural_key_name}` / `{spec.singular_key_name}` "
                "are valid and enabled."
            )
        if error_type.failure_kind == "bad_request":
            return "Check the selected model and image payload."
        if error_type.failure_kind == "server":
            return "The provider failed server-side; retry later."
        return None
