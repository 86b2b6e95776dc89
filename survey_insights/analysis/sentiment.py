"""Sentiment analysis with provider fallback.

:class:`SentimentAnalyzer` walks an ordered list of
:class:`~survey_insights.analysis.providers.SentimentProvider` strategies and
returns the first successful score. Unconfigured providers are skipped, failing
ones are logged and skipped, and the rule-based strategy at the end of the
chain always answers, so ``analyze`` never raises.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from .models import SentimentResult
from .providers import RuleBasedProvider, SentimentProvider, default_providers

_logger = logging.getLogger(__name__)


class SentimentAnalyzer:
    """Score free text on a 0..1 polarity scale."""

    def __init__(
        self,
        providers: Optional[Iterable[SentimentProvider]] = None,
        fallback: Optional[RuleBasedProvider] = None,
    ) -> None:
        external = default_providers() if providers is None else providers
        self._fallback = fallback or RuleBasedProvider()
        self._providers: Sequence[SentimentProvider] = tuple(external)

    @property
    def providers(self) -> Sequence[SentimentProvider]:
        """External providers followed by the rule-based fallback."""
        return (*self._providers, self._fallback)

    def analyze(self, text: str) -> SentimentResult:
        for provider in self._providers:
            if not provider.is_configured():
                continue
            try:
                scored = provider.score(text)
            except Exception as exc:  # noqa: BLE001 – cascade to the next provider
                _logger.warning(
                    "Sentiment provider %s failed, falling back: %s", provider.name, exc
                )
                continue
            return SentimentResult(
                score=scored.score,
                confidence=scored.confidence,
                reasoning=provider.reasoning,
            )

        return self.analyze_with_rules(text)

    def analyze_with_rules(self, text: str) -> SentimentResult:
        scored = self._fallback.score(text)
        return SentimentResult(
            score=scored.score,
            confidence=scored.confidence,
            reasoning=self._fallback.reasoning,
        )
