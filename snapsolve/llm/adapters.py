"""Provider adapters translating prompt payloads into provider wire formats.

Responsibilities:
- Build one `RequestDescriptor` per attempt for a model, credential, and payload.
- Extract generated text from each provider's decoded success body.

Key types:
- `ProviderAdapter`: protocol shared by all adapters.
- `GeminiAdapter`, `OpenAIChatAdapter`, `AnthropicAdapter`: concrete wire shapes.
"""

from __future__ import annotations

import base64
from typing import Any, Protocol

from ..models.datatypes import ImageBlob, PromptPayload, RequestDescriptor

SAMPLING_TEMPERATURE = 0.4
IMAGE_MIME_TYPE = "image/png"


def encode_image(image: ImageBlob) -> str:
    """Return base64 text for an image; text input is assumed to be base64 already."""

    if isinstance(image, str):
        return image.strip()
    return base64.b64encode(bytes(image)).decode("ascii")


def _joined_text(parts: Any, *, require_type: bool) -> str | None:
    """Join `text` fields from a list of content parts, or return `None`."""

    if not isinstance(parts, list):
        return None
    texts: list[str] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        if require_type and part.get("type") != "text":
            continue
        value = part.get("text")
        if isinstance(value, str):
            texts.append(value)
    joined = "".join(texts).strip()
    return joined or None


class ProviderAdapter(Protocol):
    """Protocol for provider-specific request building and response extraction."""

    def build_request(
        self, model: str, credential: str, payload: PromptPayload
    ) -> RequestDescriptor:
        """Build a fresh wire request for one attempt."""

    def extract_text(self, body: Any) -> str | None:
        """Return generated text from a decoded success body, or `None` when absent."""


class GeminiAdapter:
    """Gemini `generateContent` adapter using inline base64 image parts."""

    def __init__(
        self, base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    ) -> None:
        self.base_url = base_url.rstrip("/")

    def build_request(
        self, model: str, credential: str, payload: PromptPayload
    ) -> RequestDescriptor:
        parts: list[dict[str, Any]] = [
            {"inline_data": {"mime_type": IMAGE_MIME_TYPE, "data": encode_image(image)}}
            for image in payload.images
        ]
        parts.append({"text": payload.prompt_text})
        return RequestDescriptor(
            url=f"{self.base_url}/models/{model}:generateContent",
            headers={"x-goog-api-key": credential},
            body={
                "contents": [{"parts": parts}],
                "generationConfig": {"temperature": SAMPLING_TEMPERATURE},
            },
            extractor=self.extract_text,
        )

    def extract_text(self, body: Any) -> str | None:
        if not isinstance(body, dict):
            return None
        candidates = body.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return None
        first = candidates[0]
        if not isinstance(first, dict):
            return None
        content = first.get("content")
        if not isinstance(content, dict):
            return None
        return _joined_text(content.get("parts"), require_type=False)


class OpenAIChatAdapter:
    """OpenAI-compatible chat-completions adapter using data-URL image parts.

    Also serves OpenRouter, which exposes the same wire format under another base URL.
    """

    def __init__(self, base_url: str = "https://api.openai.com/v1") -> None:
        self.base_url = base_url.rstrip("/")

    def build_request(
        self, model: str, credential: str, payload: PromptPayload
    ) -> RequestDescriptor:
        content: list[dict[str, Any]] = [
            {
                "type": "image_url",
                "image_url": {"url": f"data:{IMAGE_MIME_TYPE};base64,{encode_image(image)}"},
            }
            for image in payload.images
        ]
        content.append({"type": "text", "text": payload.prompt_text})
        return RequestDescriptor(
            url=f"{self.base_url}/chat/completions",
            headers={"Authorization": f"Bearer {credential}"},
            body={
                "model": model,
                "temperature": SAMPLING_TEMPERATURE,
                "messages": [{"role": "user", "content": content}],
            },
            extractor=self.extract_text,
        )

    def extract_text(self, body: Any) -> str | None:
        if not isinstance(body, dict):
            return None
        choices = body.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        first = choices[0]
        if not isinstance(first, dict):
            return None
        message = first.get("message")
        if not isinstance(message, dict):
            return None
        content = message.get("content")
        if isinstance(content, str):
            return content.strip() or None
        return _joined_text(content, require_type=True)


class AnthropicAdapter:
    """Anthropic messages adapter using base64 image source blocks."""

    def __init__(
        self,
        base_url: str = "https://api.anthropic.com/v1",
        api_version: str = "2023-06-01",
        max_tokens: int = 2048,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.max_tokens = max_tokens

    def build_request(
        self, model: str, credential: str, payload: PromptPayload
    ) -> RequestDescriptor:
        content: list[dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": IMAGE_MIME_TYPE,
                    "data": encode_image(image),
                },
            }
            for image in payload.images
        ]
        content.append({"type": "text", "text": payload.prompt_text})
        return RequestDescriptor(
            url=f"{self.base_url}/messages",
            headers={"x-api-key": credential, "anthropic-version": self.api_version},
            body={
                "model": model,
                "max_tokens": self.max_tokens,
                "temperature": SAMPLING_TEMPERATURE,
                "messages": [{"role": "user", "content": content}],
            },
            extractor=self.extract_text,
        )

    def extract_text(self, body: Any) -> str | None:
        if not isinstance(body, dict):
            return None
        return _joined_text(body.get("content"), require_type=True)
