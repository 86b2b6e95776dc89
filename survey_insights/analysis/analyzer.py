"""Comprehensive analysis of a single feedback text.

``ResponseAnalyzer.analyze`` must not fail the request it runs in: any
unexpected error inside the pipeline is logged and replaced by a well-formed
neutral :class:`AnalysisResult`.
"""
from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from .categories import Categorizer
from .key_phrases import KeyPhraseExtractor
from .models import (
    FALLBACK_CATEGORY,
    GENERAL_FEEDBACK,
    AnalysisResult,
    CategoryResult,
    Priority,
    SentimentResult,
    Topics,
)
from .priority import classify, suggest_actions
from .sentiment import SentimentAnalyzer

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


def extract_topics(categories: Sequence[CategoryResult]) -> Topics:
    primary = categories[0].name if categories else GENERAL_FEEDBACK
    secondary = categories[1].name if len(categories) > 1 else None
    return Topics(primary=primary, secondary=secondary)


class ResponseAnalyzer:
    """Run sentiment, categorization and key-phrase extraction over one text."""

    def __init__(
        self,
        sentiment: Optional[SentimentAnalyzer] = None,
        categorizer: Optional[Categorizer] = None,
        key_phrases: Optional[KeyPhraseExtractor] = None,
    ) -> None:
        self.sentiment = sentiment or SentimentAnalyzer()
        self.categorizer = categorizer or Categorizer()
        self.key_phrases = key_phrases or KeyPhraseExtractor()

    def analyze(self, text: str) -> AnalysisResult:
        start = time.perf_counter()
        try:
            sentiment = self.sentiment.analyze(text)
            categories = self.categorizer.categorize(text) or [FALLBACK_CATEGORY]
            phrases = self.key_phrases.extract(text)

            priority = classify(sentiment, categories)
            actions = suggest_actions(sentiment, categories, priority)

            return AnalysisResult(
                sentiment=sentiment,
                categories=tuple(categories),
                key_phrases=tuple(phrases),
                topics=extract_topics(categories),
                priority=priority,
                suggested_actions=tuple(actions),
                processing_time=_elapsed_ms(start),
            )
        except Exception:  # noqa: BLE001 – analysis must never fail the caller
            logger.warning("Comprehensive analysis failed; using defaults", exc_info=True)
            return self.fallback_result(start)

    @staticmethod
    def fallback_result(start: Optional[float] = None) -> AnalysisResult:
        return AnalysisResult(
            sentiment=SentimentResult.neutral(),
            categories=(FALLBACK_CATEGORY,),
            key_phrases=(),
            topics=Topics(primary=GENERAL_FEEDBACK),
            priority=Priority.MEDIUM,
            suggested_actions=("Review feedback manually",),
            processing_time=_elapsed_ms(start) if start is not None else 0.0,
        )
