"""Telemetry and observability helpers.

This package emits deterministic dispatch lifecycle logs.
"""

from .logger import DispatchLogger, configure_logging

__all__ = ["DispatchLogger", "configure_logging"]
