"""Sentiment scoring strategies.

Every strategy exposes the same two calls:

* ``is_configured()`` – whether the strategy can be attempted at all.
* ``score(text)`` – return a :class:`ProviderScore` or raise.

External strategies ask a hosted model for a compact JSON object so the reply
can be parsed deterministically. :class:`RuleBasedProvider` is the local,
keyword-driven scorer that terminates the cascade and never raises.
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import anthropic
import httpx

from .. import config
from .. import openai_client
from ..exceptions import ProviderError, ProviderNotConfiguredError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderScore:
    score: float
    confidence: float


class SentimentProvider:
    """Base class for a single step in the sentiment cascade."""

    name: str = "base"
    confidence: float = 0.0

    def is_configured(self) -> bool:
        return True

    def score(self, text: str) -> ProviderScore:  # pragma: no cover – abstract
        raise NotImplementedError

    @property
    def reasoning(self) -> str:
        return f"provider:{self.name}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


# ---------------------------------------------------------------------------
# External (LLM-backed) providers
# ---------------------------------------------------------------------------

_RESPONSE_RE = re.compile(r"\{[\s\S]*?\}")  # first JSON object in string

_PROMPT_SYSTEM = (
    "You are a precise sentiment analysis assistant for customer feedback. "
    'Return ONLY a minified JSON like {"score":0.8} where score is between 0 '
    "(very negative) and 1 (very positive)."
)


def _user_prompt(text: str) -> str:
    return (
        "Sentiment analysis request. Rate the polarity of the feedback below "
        "on a 0..1 scale.\n\nText:\n" + text
    )


def parse_score(content: str) -> float:
    """Extract the ``score`` value from a model's raw string response."""

    match = _RESPONSE_RE.search(content or "")
    if not match:
        raise ProviderError("Model response did not contain a JSON object")

    try:
        payload: Dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ProviderError("Failed to parse JSON from model response") from exc

    score = payload.get("score")
    # bool is an int subclass; reject it explicitly
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ProviderError("Score missing or not numeric")

    return max(0.0, min(1.0, float(score)))


class _LLMProvider(SentimentProvider):
    """Shared prompt/parse plumbing for the hosted-model providers."""

    api_key_env: str = ""

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        self.timeout = config.PROVIDER_TIMEOUT_SECONDS if timeout is None else timeout

    def is_configured(self) -> bool:
        return bool(os.getenv(self.api_key_env))

    def _api_key(self) -> str:
        key = os.getenv(self.api_key_env)
        if not key:
            raise ProviderNotConfiguredError(f"{self.api_key_env} is not set")
        return key

    def _complete(self, text: str) -> str:  # pragma: no cover – abstract
        raise NotImplementedError

    def score(self, text: str) -> ProviderScore:
        content = self._complete(text)
        return ProviderScore(score=parse_score(content), confidence=self.confidence)


class OpenAIProvider(_LLMProvider):
    name = "openai"
    confidence = 0.85
    api_key_env = "OPENAI_API_KEY"

    def is_configured(self) -> bool:
        return openai_client.is_configured()

    def _complete(self, text: str) -> str:
        messages = [
            {"role": "system", "content": _PROMPT_SYSTEM},
            {"role": "user", "content": _user_prompt(text)},
        ]
        response = openai_client.chat_completion(
            messages, timeout=self.timeout, temperature=0.0
        )
        try:
            return response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError("Model response missing expected fields") from exc


class AnthropicProvider(_LLMProvider):
    name = "anthropic"
    confidence = 0.82
    api_key_env = "ANTHROPIC_API_KEY"

    def __init__(self, *, timeout: Optional[float] = None, model: Optional[str] = None):
        super().__init__(timeout=timeout)
        self.model = model or config.ANTHROPIC_MODEL

    def _complete(self, text: str) -> str:
        client = anthropic.Anthropic(
            api_key=self._api_key(), timeout=self.timeout, max_retries=0
        )
        try:
            message = client.messages.create(
                model=self.model,
                max_tokens=64,
                temperature=0.0,
                system=_PROMPT_SYSTEM,
                messages=[{"role": "user", "content": _user_prompt(text)}],
            )
        except anthropic.APIError as exc:
            raise ProviderError(f"Anthropic request failed: {exc}") from exc

        blocks = [getattr(b, "text", "") for b in message.content]
        return "".join(blocks)


class GeminiProvider(_LLMProvider):
    name = "gemini"
    confidence = 0.80
    api_key_env = "GEMINI_API_KEY"

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(self, *, timeout: Optional[float] = None, model: Optional[str] = None):
        super().__init__(timeout=timeout)
        self.model = model or config.GEMINI_MODEL

    def _complete(self, text: str) -> str:
        payload = {
            "systemInstruction": {"parts": [{"text": _PROMPT_SYSTEM}]},
            "contents": [{"role": "user", "parts": [{"text": _user_prompt(text)}]}],
            "generationConfig": {"temperature": 0.0},
        }
        try:
            response = httpx.post(
                f"{self.BASE_URL}/{self.model}:generateContent",
                headers={"x-goog-api-key": self._api_key()},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"Gemini request failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Gemini request failed: {exc}") from exc

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError("Gemini response missing expected fields") from exc
        return "".join(p.get("text", "") for p in parts)


# ---------------------------------------------------------------------------
# Rule-based fallback
# ---------------------------------------------------------------------------

POSITIVE_WORDS: Tuple[str, ...] = (
    "good",
    "great",
    "excellent",
    "amazing",
    "fantastic",
    "love",
    "perfect",
    "wonderful",
    "outstanding",
    "satisfied",
    "happy",
    "pleased",
)

NEGATIVE_WORDS: Tuple[str, ...] = (
    "bad",
    "terrible",
    "awful",
    "horrible",
    "hate",
    "disappointed",
    "frustrated",
    "angry",
    "unsatisfied",
    "poor",
    "worst",
)


def basic_sentiment_score(
    text: str,
    positive_words: Tuple[str, ...] = POSITIVE_WORDS,
    negative_words: Tuple[str, ...] = NEGATIVE_WORDS,
) -> float:
    """Keyword polarity score on a 0..1 scale, starting from 0.5.

    Each whitespace token moves the score by at most +0.1 (if it contains any
    positive word) and at most -0.1 (if it contains any negative word).
    Containment is substring based, so "unsatisfied" counts for both lists.
    """

    score = 0.5
    for token in text.lower().split():
        if any(word in token for word in positive_words):
            score += 0.1
        if any(word in token for word in negative_words):
            score -= 0.1
    return max(0.0, min(1.0, score))


class RuleBasedProvider(SentimentProvider):
    """Deterministic, offline scorer terminating the provider cascade."""

    name = "rule-based"
    confidence = 0.65

    def __init__(
        self,
        positive_words: Tuple[str, ...] = POSITIVE_WORDS,
        negative_words: Tuple[str, ...] = NEGATIVE_WORDS,
    ) -> None:
        self.positive_words = positive_words
        self.negative_words = negative_words

    @property
    def reasoning(self) -> str:
        return "rule-based"

    def score(self, text: str) -> ProviderScore:
        value = basic_sentiment_score(
            text if isinstance(text, str) else "",
            self.positive_words,
            self.negative_words,
        )
        return ProviderScore(score=value, confidence=self.confidence)


def default_providers() -> Tuple[SentimentProvider, ...]:
    """Provider cascade in fixed priority order."""
    return (OpenAIProvider(), AnthropicProvider(), GeminiProvider())
