"""Shared pytest fixtures for the full SnapSolve test suite."""

from __future__ import annotations

import pytest

from snapsolve.config import _ENV_KEYS
from snapsolve.provider_factory import PROVIDER_SPECS
from tests.http_mocks import FakeClock

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-bytes"


@pytest.fixture(autouse=True)
def _isolate_snapsolve_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove provider keys and `SNAPSOLVE_*` settings inherited from the host shell."""

    for spec in PROVIDER_SPECS.values():
        for name in spec.key_source_names:
            monkeypatch.delenv(name, raising=False)
    for name in _ENV_KEYS.values():
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced clock starting at zero."""

    return FakeClock()


@pytest.fixture
def png_bytes() -> bytes:
    """Provide placeholder PNG bytes; providers are mocked so content is irrelevant."""

    return PNG_BYTES
