"""Credential pool and rotation cursor for provider API keys.

Responsibilities:
- Resolve per-provider ordered key lists from plural and singular configuration names.
- Hold resolved keys read-only for the process lifetime.
- Hand out fair round-robin start indices, atomically, per provider.
- Avoid logging or exposing secret values in diagnostics.

Key types:
- `CredentialPool`: immutable per-provider key lists loaded once from configuration.
- `RotationCursor`: lock-guarded per-provider start-index counter.
"""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass, field
from typing import Mapping

from .provider_factory import PROVIDER_SPECS, ProviderFactory

_KEY_SEPARATORS = re.compile(r"[,;\r\n]+")


def parse_key_list(raw: object) -> list[str]:
    """Parse one configuration value into an ordered list of non-blank keys.

    A JSON array of strings is honored first; any other text is split on commas,
    semicolons, and newlines. Duplicates are kept.
    """

    if not isinstance(raw, str):
        return []
    text = raw.strip()
    if not text:
        return []

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, list):
        return [item.strip() for item in parsed if isinstance(item, str) and item.strip()]

    return [token.strip() for token in _KEY_SEPARATORS.split(text) if token.strip()]


def resolve_keys(provider_id: str, source: Mapping[str, str]) -> list[str]:
    """Return plural-sourced keys followed by singular-sourced keys for a provider.

    An empty list is a valid outcome; the dispatcher reports it as a validation error.
    """

    plural_name, singular_name = ProviderFactory.spec(provider_id).key_source_names
    return parse_key_list(source.get(plural_name)) + parse_key_list(source.get(singular_name))


@dataclass(frozen=True, slots=True)
class CredentialPool:
    """Read-only per-provider credential lists resolved at configuration-load time."""

    keys_by_provider: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> CredentialPool:
        """Resolve keys for every supported provider from an environment mapping."""

        return cls(
            keys_by_provider={
                provider_id: tuple(resolve_keys(provider_id, env))
                for provider_id in PROVIDER_SPECS
            }
        )

    def keys_for(self, provider_id: str) -> tuple[str, ...]:
        """Return the ordered keys configured for a provider (possibly empty)."""

        return tuple(self.keys_by_provider.get(provider_id, ()))

    def key_count(self, provider_id: str) -> int:
        """Return how many keys are configured for a provider."""

        return len(self.keys_for(provider_id))


class RotationCursor:
    """Per-provider round-robin start index shared by concurrent dispatch calls."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._positions: dict[str, int] = {}

    def next_start(self, provider_id: str, pool_size: int) -> int:
        """Return the current start index, then advance it by one modulo `pool_size`."""

        if pool_size <= 0:
            raise ValueError("`pool_size` must be a positive integer.")
        with self._lock:
            start = self._positions.get(provider_id, 0) % pool_size
            self._positions[provider_id] = (start + 1) % pool_size
            return start

    def peek(self, provider_id: str) -> int:
        """Return the stored cursor value without advancing it."""

        with self._lock:
            return self._positions.get(provider_id, 0)
