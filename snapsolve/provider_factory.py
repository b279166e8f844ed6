"""Provider registry and adapter factory.

Responsibilities:
- Describe each supported provider: configuration names, default model, adapter.
- Resolve free-form provider selectors to a supported provider identifier.
- Keep the dispatcher independent from concrete adapter construction.

Notes:
- Adding a backend means adding one `ProviderSpec` and, when its wire format is new,
  one adapter class.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .llm.adapters import AnthropicAdapter, GeminiAdapter, OpenAIChatAdapter, ProviderAdapter

DEFAULT_PROVIDER_ID = "gemini"


@dataclass(frozen=True, slots=True)
class ProviderSpec:
    """Static description of one provider backend.

    Attributes:
        provider_id: Stable lowercase identifier.
        plural_key_name: Configuration name holding multiple keys.
        singular_key_name: Configuration name holding one fallback key.
        default_model: Model used when the caller gives no explicit override.
        adapter_factory: Zero-argument constructor for the provider's adapter.
    """

    provider_id: str
    plural_key_name: str
    singular_key_name: str
    default_model: str
    adapter_factory: Callable[[], ProviderAdapter]

    @property
    def key_source_names(self) -> tuple[str, str]:
        """Return `(plural, singular)` configuration names."""

        return (self.plural_key_name, self.singular_key_name)


PROVIDER_SPECS: dict[str, ProviderSpec] = {
    "gemini": ProviderSpec(
        provider_id="gemini",
        plural_key_name="GEMINI_API_KEYS",
        singular_key_name="GEMINI_API_KEY",
        default_model="gemini-2.5-flash",
        adapter_factory=GeminiAdapter,
    ),
    "openai": ProviderSpec(
        provider_id="openai",
        plural_key_name="OPENAI_API_KEYS",
        singular_key_name="OPENAI_API_KEY",
        default_model="gpt-4o-mini",
        adapter_factory=OpenAIChatAdapter,
    ),
    "anthropic": ProviderSpec(
        provider_id="anthropic",
        plural_key_name="ANTHROPIC_API_KEYS",
        singular_key_name="ANTHROPIC_API_KEY",
        default_model="claude-3-5-sonnet-latest",
        adapter_factory=AnthropicAdapter,
    ),
    "openrouter": ProviderSpec(
        provider_id="openrouter",
        plural_key_name="OPENROUTER_API_KEYS",
        singular_key_name="OPENROUTER_API_KEY",
        default_model="openai/gpt-4o-mini",
        adapter_factory=lambda: OpenAIChatAdapter(base_url="https://openrouter.ai/api/v1"),
    ),
}

SUPPORTED_PROVIDER_IDS = frozenset(PROVIDER_SPECS)


def resolve_provider(value: object) -> str:
    """Return a supported provider id, falling back to the default for anything else."""

    if not isinstance(value, str):
        return DEFAULT_PROVIDER_ID
    token = value.strip().lower()
    if token in PROVIDER_SPECS:
        return token
    return DEFAULT_PROVIDER_ID


class ProviderFactory:
    """Factory for provider specs and adapters used by the dispatcher."""

    @staticmethod
    def spec(provider_id: str) -> ProviderSpec:
        """Return the `ProviderSpec` for a supported provider identifier."""

        try:
            return PROVIDER_SPECS[provider_id]
        except KeyError:
            supported = ", ".join(sorted(SUPPORTED_PROVIDER_IDS))
            raise ValueError(
                f"Unsupported provider `{provider_id}`; supported: {supported}."
            ) from None

    @staticmethod
    def create_adapter(provider_id: str) -> ProviderAdapter:
        """Create the adapter for a supported provider identifier."""

        return ProviderFactory.spec(provider_id).adapter_factory()
