"""Shared pytest fixtures."""
from __future__ import annotations

import pytest

_PROVIDER_KEYS = ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY", "OPENAI_ORG")


@pytest.fixture(autouse=True)
def no_provider_credentials(monkeypatch):
    """Keep every test offline: no hosted provider is configured by default."""
    for key in _PROVIDER_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield
