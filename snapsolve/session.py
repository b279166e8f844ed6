"""Capture-stack session bridging triggers, capture, dispatch, and presentation.

Responsibilities:
- Keep a bounded, ordered stack of captured screenshots.
- Hand the stack to the dispatcher and forward text or diagnostics to the presenter.
- Never retry on its own; the dispatcher owns all retry policy.

Key types:
- `ScreenCapture`: collaborator yielding one PNG per invocation.
- `Presenter`: collaborator receiving response text, error strings, and loading state.
- `CaptureSession`: the stack plus the trigger operations.
"""

from __future__ import annotations

import threading
from typing import Protocol

from .dispatcher import Dispatcher
from .errors import DispatchError
from .models.datatypes import ImageBlob

DEFAULT_MAX_IMAGES = 5


class ScreenCapture(Protocol):
    """Protocol for screen-capture collaborators."""

    def capture(self) -> ImageBlob:
        """Capture one PNG image."""


class Presenter(Protocol):
    """Protocol for presentation collaborators."""

    def show_response(self, text: str) -> None:
        """Display extracted response text."""

    def show_error(self, message: str) -> None:
        """Display a human-readable error string."""

    def set_loading(self, loading: bool) -> None:
        """Toggle the loading indicator."""

    def show_stack(self, count: int) -> None:
        """Display how many screenshots are queued."""

    def clear(self) -> None:
        """Clear any displayed response."""


class CaptureSession:
    """Bounded screenshot stack with capture, process, and reset triggers."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        capture: ScreenCapture,
        presenter: Presenter,
        max_images: int = DEFAULT_MAX_IMAGES,
    ) -> None:
        if max_images <= 0:
            raise ValueError("`max_images` must be a positive integer.")
        self.dispatcher = dispatcher
        self.capture_source = capture
        self.presenter = presenter
        self.max_images = max_images
        self._lock = threading.Lock()
        self._images: list[ImageBlob] = []

    @property
    def images(self) -> tuple[ImageBlob, ...]:
        """Return a snapshot of the queued images."""

        with self._lock:
            return tuple(self._images)

    def capture(self) -> bool:
        """Capture one screenshot onto the stack; return whether it was queued."""

        try:
            image = self.capture_source.capture()
        except Exception:
            self.presenter.show_error("Failed to capture screenshot")
            return False

        with self._lock:
            if len(self._images) >= self.max_images:
                full = True
            else:
                self._images.append(image)
                full = False
            count = len(self._images)

        if full:
            self.presenter.show_error(f"Maximum {self.max_images} screenshots allowed.")
            return False
        self.presenter.show_stack(count)
        return True

    def process(
        self,
        language: str,
        *,
        mode: object = None,
        provider: object = None,
        model: str | None = None,
    ) -> str | None:
        """Dispatch the queued stack and present the outcome; return text on success."""

        batch = self.images
        if not batch:
            self.presenter.show_error("No screenshots to process.")
            return None

        self.presenter.set_loading(True)
        try:
            text = self.dispatcher.dispatch(
                batch, language, mode=mode, provider=provider, model=model
            )
        except DispatchError as exc:
            self.presenter.show_error(str(exc))
            return None
        else:
            with self._lock:
                del self._images[: len(batch)]
                count = len(self._images)
            self.presenter.show_response(text)
            self.presenter.show_stack(count)
            return text
        finally:
            self.presenter.set_loading(False)

    def reset(self) -> None:
        """Drop every queued screenshot and clear the presented response."""

        with self._lock:
            self._images.clear()
        self.presenter.show_stack(0)
        self.presenter.clear()
