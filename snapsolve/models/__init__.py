"""Typed models used across SnapSolve dispatch stages."""

from .datatypes import (
    AttemptOutcome,
    ImageBlob,
    PromptMode,
    PromptPayload,
    RequestDescriptor,
    TransportResponse,
)

__all__ = [
    "AttemptOutcome",
    "ImageBlob",
    "PromptMode",
    "PromptPayload",
    "RequestDescriptor",
    "TransportResponse",
]
