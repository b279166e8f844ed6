"""Core datatypes shared across SnapSolve modules.

Responsibilities:
- Represent immutable call-scoped records exchanged between dispatcher stages.
- Provide explicit typing for adapters, transport, and the attempt loop.

Key types:
- `PromptMode`, `PromptPayload`, `RequestDescriptor`, `TransportResponse`,
  and `AttemptOutcome`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Union

from ..errors import DispatchError

ImageBlob = Union[bytes, str]


class PromptMode(str, Enum):
    """Instruction template selector accompanying the captured images."""

    CODE = "code"
    MCQ = "mcq"


@dataclass(frozen=True, slots=True)
class PromptPayload:
    """Ordered images plus one trailing instruction text, built once per call.

    Attributes:
        images: Non-empty ordered image blobs (`bytes`, or base64 text).
        prompt_text: Composed instruction segment appended after the images.
    """

    images: tuple[ImageBlob, ...]
    prompt_text: str

    def __post_init__(self) -> None:
        """Reject empty image sequences at construction time."""

        if not self.images:
            raise ValueError("PromptPayload requires at least one image.")


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """Ephemeral wire request for one attempt; never reused across credentials.

    Attributes:
        url: Fully qualified POST endpoint.
        headers: HTTP headers including the provider's auth header.
        body: JSON-serializable request body.
        extractor: Callable pulling generated text from the decoded success body.
    """

    url: str
    headers: dict[str, str]
    body: dict[str, Any]
    extractor: Callable[[Any], str | None] = field(repr=False)


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """Raw HTTP response captured by the transport for dispatcher classification."""

    status_code: int
    content: bytes
    content_type: str = ""

    @property
    def ok(self) -> bool:
        """Return whether the status code denotes success."""

        return 200 <= self.status_code < 300

    @property
    def declares_json(self) -> bool:
        """Return whether the response declares a JSON content type."""

        return "json" in self.content_type.lower()

    def text(self) -> str:
        """Decode body bytes as UTF-8 with replacement."""

        return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True, slots=True)
class AttemptOutcome:
    """Tagged result of one attempt: success, retryable failure, or fatal failure."""

    kind: str
    text: str | None = None
    error: DispatchError | None = None

    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"

    @classmethod
    def success(cls, text: str) -> AttemptOutcome:
        """Build a success outcome carrying extracted text."""

        return cls(kind=cls.SUCCESS, text=text)

    @classmethod
    def retryable(cls, error: DispatchError) -> AttemptOutcome:
        """Build a failure that may be retried with the next credential."""

        return cls(kind=cls.RETRYABLE, error=error)

    @classmethod
    def fatal(cls, error: DispatchError) -> AttemptOutcome:
        """Build a failure that terminates the call."""

        return cls(kind=cls.FATAL, error=error)
