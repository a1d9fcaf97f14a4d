"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, and mock-transport
client factories. Fixtures here are autouse unless noted.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import suppress
import logging
import os

import httpx
import pytest

Handler = Callable[[httpx.Request], httpx.Response]

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "collab_fetch.config.load_dotenv",
            lambda *_args, **_kwargs: False,
            raising=False,
        )


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """Clear COLLAB_FETCH_* env vars so tests never see a developer's setup."""
    for key in list(os.environ.keys()):
        if key.startswith("COLLAB_FETCH_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def pytest_configure(config):
    config.addinivalue_line("markers", "allow_dotenv: let python-dotenv read .env")


# =============================================================================
# Test Doubles (not autouse)
# =============================================================================


@pytest.fixture
def mock_client() -> Callable[..., httpx.AsyncClient]:
    """Return a factory for AsyncClients backed by ``httpx.MockTransport``."""

    def _make(handler: Handler, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return _make
