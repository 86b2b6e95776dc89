"""OpenAI SDK access for the analysis helpers.

Every OpenAI call in the project goes through :func:`chat_completion`, which
flattens the SDK response into

    {"choices": [{"message": {"content": "..."}}], "model": "..."}

so callers and their tests never deal with SDK response models.
"""
from __future__ import annotations

import importlib
import os
from typing import Any, Dict, List, Optional

from . import config

API_KEY_ENV = "OPENAI_API_KEY"
ORG_ENV = "OPENAI_ORG"


class OpenAIClientError(RuntimeError):
    """Raised when the client cannot be configured (e.g. no API key)."""


def _load_openai():
    # Resolved per call so tests can swap sys.modules["openai"]
    return importlib.import_module("openai")


def is_configured() -> bool:
    """Return *True* when an OpenAI API key is available."""
    return bool(os.getenv(API_KEY_ENV))


def _credentials() -> Dict[str, str]:
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        raise OpenAIClientError(f"{API_KEY_ENV} environment variable is not set.")
    creds = {"api_key": api_key}
    org = os.getenv(ORG_ENV)
    if org:
        creds["organization"] = org
    return creds


def get_openai_client(*, timeout: Optional[float] = None) -> Any:
    """Return an ``openai.OpenAI`` client built from the environment.

    The client never retries: a failed call surfaces at once so the sentiment
    cascade can move on to the next provider.

    Raises
    ------
    OpenAIClientError
        If ``OPENAI_API_KEY`` is missing or empty.
    """

    kwargs: Dict[str, Any] = {**_credentials(), "max_retries": 0}
    if timeout is not None:
        kwargs["timeout"] = timeout
    return _load_openai().OpenAI(**kwargs)


def chat_completion(
    messages: List[Dict[str, str]],
    *,
    model: Optional[str] = None,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Run one chat completion and return the flattened reply.

    ``model`` defaults to ``config.OPENAI_MODEL``; extra ``kwargs``
    (``temperature``, ``max_tokens`` ...) go straight to
    ``client.chat.completions.create``.
    """

    client = get_openai_client(timeout=timeout)
    completion = client.chat.completions.create(
        model=model or config.OPENAI_MODEL, messages=messages, **kwargs
    )
    return {
        "choices": [
            {"message": {"content": choice.message.content or ""}}
            for choice in completion.choices
        ],
        "model": completion.model,
    }
