"""Tests for the OpenAI client helper."""
from __future__ import annotations

import importlib
import sys
from types import ModuleType, SimpleNamespace

import pytest

# Module under test – will be imported lazily inside tests after env setup


class DummyOpenAI:  # pragma: no cover – simple stub
    """Minimal stub mimicking the ``openai.OpenAI`` client class."""

    last_init: dict = {}
    last_create: dict = {}

    def __init__(self, **kwargs):
        DummyOpenAI.last_init = kwargs
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    @staticmethod
    def _create(**kwargs):
        DummyOpenAI.last_create = kwargs
        message = SimpleNamespace(content='{"score": 0.9}')
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message)], model=kwargs["model"]
        )


def _install_openai_stub(monkeypatch):
    """Insert a fake ``openai`` module into ``sys.modules``."""

    fake_openai = ModuleType("openai")
    fake_openai.OpenAI = DummyOpenAI  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "openai", fake_openai)
    return fake_openai


def reload_client_module():
    """Ensure a fresh import state for openai_client module."""

    if "survey_insights.openai_client" in sys.modules:
        del sys.modules["survey_insights.openai_client"]
    return importlib.import_module("survey_insights.openai_client")


def test_missing_api_key_raises(monkeypatch):
    """get_openai_client should raise if OPENAI_API_KEY is not set."""

    _install_openai_stub(monkeypatch)

    oc = reload_client_module()

    assert oc.is_configured() is False
    with pytest.raises(oc.OpenAIClientError):
        oc.get_openai_client()


def test_successful_client(monkeypatch):
    """get_openai_client builds a client with retries disabled."""

    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("OPENAI_ORG", "org-1")
    _install_openai_stub(monkeypatch)

    oc = reload_client_module()
    client = oc.get_openai_client(timeout=3.0)

    assert isinstance(client, DummyOpenAI)
    assert DummyOpenAI.last_init == {
        "api_key": "test-key",
        "max_retries": 0,
        "organization": "org-1",
        "timeout": 3.0,
    }


def test_chat_completion_wrapper(monkeypatch):
    """chat_completion returns a legacy-style dict of choices."""

    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    _install_openai_stub(monkeypatch)

    oc = reload_client_module()

    result = oc.chat_completion(
        [{"role": "user", "content": "Hello"}],
        model="gpt-test",
        temperature=0,
    )

    assert result == {
        "choices": [{"message": {"content": '{"score": 0.9}'}}],
        "model": "gpt-test",
    }
    assert DummyOpenAI.last_create["messages"][0]["content"] == "Hello"
    assert DummyOpenAI.last_create["temperature"] == 0
