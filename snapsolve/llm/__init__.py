"""Provider-facing building blocks: prompts, adapters, transport, and failure policy."""

from .adapters import AnthropicAdapter, GeminiAdapter, OpenAIChatAdapter, ProviderAdapter
from .deadline import CallDeadline
from .prompts import PromptLibrary, compose_prompt, resolve_mode

__all__ = [
    "AnthropicAdapter",
    "CallDeadline",
    "GeminiAdapter",
    "OpenAIChatAdapter",
    "PromptLibrary",
    "ProviderAdapter",
    "compose_prompt",
    "resolve_mode",
]
