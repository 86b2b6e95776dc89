"""Result records produced by the response-analysis pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

GENERAL_FEEDBACK = "General Feedback"


class SentimentLabel(str, Enum):
    """Five-way sentiment classes derived from a 0–1 score."""

    VERY_NEGATIVE = "VERY_NEGATIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"
    POSITIVE = "POSITIVE"
    VERY_POSITIVE = "VERY_POSITIVE"


class Priority(str, Enum):
    """Follow-up urgency for a single piece of feedback."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def label_for_score(score: float) -> SentimentLabel:
    """Map *score* onto :class:`SentimentLabel`.

    Boundary values belong to the higher bucket, e.g. ``0.8`` is
    ``VERY_POSITIVE`` while ``0.79999`` is ``POSITIVE``.
    """
    if score >= 0.8:
        return SentimentLabel.VERY_POSITIVE
    if score >= 0.6:
        return SentimentLabel.POSITIVE
    if score >= 0.4:
        return SentimentLabel.NEUTRAL
    if score >= 0.2:
        return SentimentLabel.NEGATIVE
    return SentimentLabel.VERY_NEGATIVE


@dataclass(frozen=True)
class SentimentResult:
    """Structured sentiment analysis output.

    ``label`` is not a constructor argument; it is always derived from the
    (clamped) ``score``.
    """

    score: float  # 0 = most negative, 1 = most positive
    confidence: float
    reasoning: Optional[str] = None
    label: SentimentLabel = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", _clamp(self.score))
        object.__setattr__(self, "confidence", _clamp(self.confidence))
        object.__setattr__(self, "label", label_for_score(self.score))

    @classmethod
    def neutral(cls, reasoning: str = "fallback") -> "SentimentResult":
        return cls(score=0.5, confidence=0.5, reasoning=reasoning)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label.value,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class CategoryResult:
    """One topical category with its keyword relevance."""

    name: str
    score: float
    relevance: float

    @classmethod
    def of(cls, name: str, relevance: float) -> "CategoryResult":
        value = _clamp(relevance)
        return cls(name=name, score=value, relevance=value)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "score": self.score, "relevance": self.relevance}


FALLBACK_CATEGORY = CategoryResult.of(GENERAL_FEEDBACK, 0.7)


@dataclass(frozen=True)
class Topics:
    primary: str
    secondary: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"primary": self.primary, "secondary": self.secondary}


@dataclass(frozen=True)
class AnalysisResult:
    """Full analysis of one text unit (typically one answer field)."""

    sentiment: SentimentResult
    categories: Tuple[CategoryResult, ...]
    key_phrases: Tuple[str, ...]
    topics: Topics
    priority: Priority
    suggested_actions: Tuple[str, ...]
    processing_time: float  # milliseconds

    @property
    def category_names(self) -> List[str]:
        return [c.name for c in self.categories]

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase JSON shape used by the API."""
        return {
            "sentiment": self.sentiment.to_dict(),
            "categories": [c.to_dict() for c in self.categories],
            "keyPhrases": list(self.key_phrases),
            "topics": self.topics.to_dict(),
            "priority": self.priority.value,
            "suggestedActions": list(self.suggested_actions),
            "processingTime": self.processing_time,
        }
