"""
Pytest configuration and fixtures for cosmoparse tests.
"""

from typing import Callable, List, Tuple

import httpx
import pytest

from cosmoparse.llm.client import CosmoClient


class ScriptedTransport:
    """Returns the scripted responses in order (the last one repeats) and records every request."""

    def __init__(self, responses: List[httpx.Response]):
        self._responses = responses
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        scripted = self._responses[min(len(self.requests) - 1, len(self._responses) - 1)]
        # Fresh copy so a repeated response is never reused after being read
        return httpx.Response(scripted.status_code, headers=scripted.headers, content=scripted.content)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep a developer's real COSMO_AI_* settings out of the tests."""
    for name in ("COSMO_AI_KEY", "COSMO_AI_MODEL", "COSMO_AI_BASE_URL", "COSMO_AI_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def scripted() -> Callable[..., Tuple[CosmoClient, ScriptedTransport]]:
    """Build a CosmoClient whose sync and async transports replay the given responses."""

    def _make(*responses: httpx.Response):
        script = ScriptedTransport(list(responses) or [httpx.Response(200, json={})])
        mock = httpx.MockTransport(script)
        return CosmoClient(timeout=5, transport=mock, async_transport=mock), script

    return _make
