"""Call-wide deadline and cancellation token.

Responsibilities:
- Arm one deadline per dispatch call, shared by every attempt in that call.
- Expose the remaining budget so each network call is capped by it.
- Allow cooperative cancellation from another thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Event
from time import monotonic
from typing import Callable


@dataclass(slots=True)
class CallDeadline:
    """Single deadline armed at construction and never reset per attempt."""

    timeout_seconds: float
    clock: Callable[[], float] = monotonic
    _expires_at: float = field(init=False)
    _cancelled: Event = field(init=False, default_factory=Event)

    def __post_init__(self) -> None:
        """Arm the deadline relative to the injected clock."""

        if self.timeout_seconds <= 0.0:
            raise ValueError("`timeout_seconds` must be a positive number.")
        self._expires_at = self.clock() + self.timeout_seconds

    def remaining(self) -> float:
        """Return non-negative seconds left before the deadline fires."""

        if self._cancelled.is_set():
            return 0.0
        return max(0.0, self._expires_at - self.clock())

    @property
    def expired(self) -> bool:
        """Return whether the deadline elapsed or the call was cancelled."""

        return self._cancelled.is_set() or self.clock() >= self._expires_at

    @property
    def cancelled(self) -> bool:
        """Return whether `cancel()` was called."""

        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Fire the token immediately; safe to call from any thread."""

        self._cancelled.set()
