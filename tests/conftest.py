"""
Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and provides common fixtures
and configuration for all test modules.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import httpx
import pytest

from quicktranslate.core.languages import LanguageCatalog
from quicktranslate.core.models import TranslationResult


@pytest.fixture
def catalog():
    """The two-language catalog shipped by default."""
    return LanguageCatalog.from_entries([("eng_Latn", "English"), ("asm_Beng", "Assamese")])


@pytest.fixture
def sleeps():
    """Records backoff delays instead of waiting."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def sleep(delay):
        sleeps.append(delay)
    return sleep


def mock_http_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by `handler(request)`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeTranslationClient:
    """Stands in for TranslationClient; every text can be held back with a gate."""

    def __init__(self):
        self.calls = []
        self.gates = {}
        self.failures = {}
        self.closed = False

    def gate(self, text: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[text] = event
        return event

    async def send(self, request, on_retry=None):
        self.calls.append(request)
        gate = self.gates.get(request.text)
        if gate is not None:
            await gate.wait()
        if request.text in self.failures:
            raise self.failures[request.text]
        return TranslationResult(text=f"<{request.text}>", fingerprint=request.fingerprint)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeTranslationClient()


@pytest.fixture
def make_http_client():
    return mock_http_client
