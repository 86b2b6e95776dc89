"""Keyword-based topical categorization."""
from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from .models import FALLBACK_CATEGORY, CategoryResult

# Relevance must be strictly above this to keep a category
RELEVANCE_THRESHOLD = 0.3
MAX_CATEGORIES = 3

CATEGORY_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Communication": (
            "communication",
            "contact",
            "response",
            "update",
            "inform",
            "discuss",
        ),
        "Quality": ("quality", "work", "result", "outcome", "deliverable", "standard"),
        "Timeline": ("time", "deadline", "schedule", "delay", "quick", "fast", "slow"),
        "Support": ("support", "help", "assistance", "service", "team", "staff"),
        "Value": ("price", "cost", "value", "worth", "money", "budget", "affordable"),
        "User Experience": (
            "experience",
            "interface",
            "design",
            "usability",
            "user",
            "ui",
            "ux",
        ),
        "Features": ("feature", "functionality", "capability", "function", "tool"),
        "Performance": ("performance", "speed", "fast", "slow", "responsive", "lag"),
        "Documentation": ("documentation", "guide", "manual", "instruction", "help"),
        # Only ever emitted as the fallback entry
        "General Feedback": (),
    }
)


def category_relevance(text_lower: str, keywords: Tuple[str, ...]) -> float:
    """Return ``min(1, matches / len(keywords) * 2)``; 0 for an empty list."""
    if not keywords:
        return 0.0
    matches = sum(1 for keyword in keywords if keyword in text_lower)
    return min(1.0, matches / len(keywords) * 2)


class Categorizer:
    """Assign up to three categories from a fixed vocabulary."""

    def __init__(self, keywords: Optional[Mapping[str, Tuple[str, ...]]] = None):
        self._keywords = CATEGORY_KEYWORDS if keywords is None else keywords

    def categorize(self, text: str) -> List[CategoryResult]:
        text_lower = text.lower() if isinstance(text, str) else ""

        results: List[CategoryResult] = []
        for name, keywords in self._keywords.items():
            relevance = category_relevance(text_lower, keywords)
            if relevance > RELEVANCE_THRESHOLD:
                results.append(CategoryResult.of(name, relevance))

        if not results:
            return [FALLBACK_CATEGORY]

        # sorted() is stable, so vocabulary order breaks ties
        results = sorted(results, key=lambda c: c.score, reverse=True)
        return results[:MAX_CATEGORIES]
