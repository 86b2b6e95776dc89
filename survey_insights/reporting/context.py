"""Context dataclass for rendering the dashboard digest.

`DigestContext` holds every value the Jinja2 template
`survey_insights/reporting/templates/digest.md.j2` expects. Building the
context (including the optional OpenAI calls) is kept apart from rendering so
the business logic can be tested without touching template strings.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime as _dt
from datetime import timezone as _tz
from typing import Any, Dict, List, Optional

from survey_insights import openai_client
from survey_insights.analysis.anonymize import anonymize_excerpts, mask_identifiers
from survey_insights.analysis.summary import generate_insights
from survey_insights.analysis.themes import extract_themes
from survey_insights.reporting import config
from survey_insights.reporting.models import DashboardMetrics
from survey_insights.store import MetricsScope

__all__ = [
    "Stats",
    "IssueLine",
    "DigestContext",
    "build_digest_context",
]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Stats:
    """Headline numbers displayed at the top of the digest."""

    total_surveys: int
    total_responses: int
    avg_sentiment_pct: float
    completion_pct: float

    def to_dict(self) -> Dict[str, Any]:  # noqa: D401 – simple helper
        """Return a *plain* ``dict`` representation suitable for Jinja."""
        return asdict(self)


@dataclass(slots=True)
class IssueLine:
    text: str
    survey: str
    sentiment: float
    timestamp: str


@dataclass(slots=True)
class DigestContext:
    """Container with all fields used by the digest template."""

    date: str  # ISO-8601 date string (UTC)
    scope_label: str
    stats: Stats
    emoji_bar: str
    sentiment_counts: Dict[str, int]

    critical_issues: List[IssueLine] = field(default_factory=list)
    themes: List[str] = field(default_factory=list)
    insights: str = ""
    activity: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:  # noqa: D401 – simple helper
        """Return a *plain* ``dict`` (recursively) for Jinja rendering."""
        return asdict(self)


_BAR_EMOJI = (("positive", "😊"), ("neutral", "😐"), ("negative", "🙁"))


def emoji_bar(counts: Dict[str, int], max_emoji: int = 20) -> str:
    """Scale the sentiment histogram to roughly *max_emoji* emojis.

    A non-empty bucket always shows at least one emoji.
    """

    total = sum(counts.get(bucket, 0) for bucket, _ in _BAR_EMOJI)
    if not total:
        return ""
    parts = []
    for bucket, emoji in _BAR_EMOJI:
        count = counts.get(bucket, 0)
        if count:
            parts.append(emoji * max(1, round(count * max_emoji / total)))
    return "".join(parts)


def scope_label(scope: Optional[MetricsScope]) -> str:
    if scope is None:
        return "all surveys"
    parts = [
        f"{name} {value}"
        for name, value in (
            ("organization", scope.organization_id),
            ("client", scope.client_id),
            ("project", scope.project_id),
        )
        if value
    ]
    return ", ".join(parts) or "all surveys"


def build_digest_context(
    metrics: DashboardMetrics, scope: Optional[MetricsScope] = None
) -> DigestContext:
    """Convert ``DashboardMetrics`` into :class:`DigestContext`.

    The function does not mutate *metrics*. Anonymization, theme extraction
    and insight generation only run when OpenAI is configured, and their
    failures degrade to locally masked excerpts without themes or insights.
    """

    excerpts = metrics.critical_texts()
    themes: List[str] = []
    insights = ""

    stats = Stats(
        total_surveys=metrics.total_surveys,
        total_responses=metrics.total_responses,
        avg_sentiment_pct=round(metrics.avg_sentiment * 100, 1),
        completion_pct=round(metrics.completion_rate * 100, 1),
    )

    if openai_client.is_configured() and excerpts:
        try:
            excerpts = anonymize_excerpts(excerpts)
            themes = extract_themes(excerpts, max_themes=config.MAX_THEMES)
            insights = generate_insights(excerpts, themes, stats.to_dict())
        except Exception as exc:  # noqa: BLE001 – the digest must still render
            logger.warning("Digest enrichment failed: %s", exc)
            excerpts = [mask_identifiers(e) for e in metrics.critical_texts()]
            themes = []
            insights = ""
    else:
        excerpts = [mask_identifiers(e) for e in excerpts]

    issues = [
        IssueLine(
            text=text,
            survey=issue.survey,
            sentiment=round(issue.sentiment, 2),
            timestamp=issue.timestamp,
        )
        for text, issue in zip(excerpts, metrics.critical_issues)
    ]

    sentiment_counts = metrics.sentiment_distribution.to_dict()

    return DigestContext(
        date=_dt.now(tz=_tz.utc).strftime("%Y-%m-%d"),
        scope_label=scope_label(scope),
        stats=stats,
        emoji_bar=emoji_bar(sentiment_counts, config.MAX_EMOJI_BAR),
        sentiment_counts=sentiment_counts,
        critical_issues=issues,
        themes=themes[: config.MAX_THEMES],
        insights=insights,
        activity=[item.description for item in metrics.recent_activity[:5]],
    )
