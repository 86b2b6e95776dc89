"""Priority classification and follow-up suggestions."""
from __future__ import annotations

from typing import List, Sequence

from .models import CategoryResult, Priority, SentimentResult

ESCALATION_CATEGORIES = frozenset({"Support", "Quality"})

FALLBACK_ACTIONS = ("Acknowledge feedback", "Continue current approach")
MAX_ACTIONS = 4

_CATEGORY_ACTIONS = {
    "Communication": "Improve communication processes",
    "Quality": "Review quality standards",
    "Timeline": "Assess project timeline management",
    "Support": "Enhance support team training",
}


def classify(sentiment: SentimentResult, categories: Sequence[CategoryResult]) -> Priority:
    """Combine *sentiment* and *categories* into a :class:`Priority`.

    Rules are evaluated in order and the first match wins.
    """
    score = sentiment.score
    if score < 0.2:
        return Priority.CRITICAL
    if score < 0.4:
        return Priority.HIGH

    escalated = any(
        c.name in ESCALATION_CATEGORIES and c.score > 0.7 for c in categories
    )
    if escalated and score < 0.6:
        return Priority.HIGH

    return Priority.MEDIUM if score < 0.6 else Priority.LOW


def suggest_actions(
    sentiment: SentimentResult,
    categories: Sequence[CategoryResult],
    priority: Priority,
) -> List[str]:
    """Return up to four de-duplicated follow-up actions, never empty."""
    actions: List[str] = []

    if priority is Priority.CRITICAL:
        actions.append("Immediate follow-up required")
        actions.append("Escalate to management")

    if sentiment.score < 0.4:
        actions.append("Schedule customer call")
        actions.append("Review and address concerns")

    for category in categories:
        action = _CATEGORY_ACTIONS.get(category.name)
        if action:
            actions.append(action)

    if not actions:
        actions.extend(FALLBACK_ACTIONS)

    return list(dict.fromkeys(actions))[:MAX_ACTIONS]
