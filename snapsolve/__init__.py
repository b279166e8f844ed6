"""Top-level package for SnapSolve.

This package dispatches captured screenshots, together with a composed instruction
prompt, to a multimodal LLM provider and returns the extracted answer text. The main
orchestration entry point is `Dispatcher`.
"""

from .credentials import CredentialPool
from .dispatcher import Dispatcher
from .session import CaptureSession

__all__ = ["CaptureSession", "CredentialPool", "Dispatcher", "__version__"]

__version__ = "0.1.0"
