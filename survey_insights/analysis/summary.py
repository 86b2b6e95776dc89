"""Short insights paragraph for the dashboard digest."""
from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from survey_insights.analysis.replies import reply_content
from survey_insights.openai_client import chat_completion

_logger = logging.getLogger(__name__)

FALLBACK_INSIGHTS = "Unable to generate insights at this time."
ATTEMPTS = 2

_SYSTEM_PROMPT = (
    "You are a customer-experience analyst. From aggregate survey metrics, "
    "recurring themes and the most negative feedback excerpts, write 2-3 key "
    "insights with actionable recommendations as one paragraph (<=150 words, "
    "business tone). Never quote respondents."
)


def _section(title: str, lines: Sequence[str], empty: str) -> str:
    body = "\n".join(lines) if lines else empty
    return f"{title}:\n{body}"


def _clip(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "…"


def generate_insights(
    excerpts: Sequence[str],
    themes: Optional[Sequence[str]] = None,
    stats: Optional[Mapping[str, object]] = None,
    *,
    max_tokens: int = 300,
    temperature: float = 0.4,
    max_length_chars: int = 900,
) -> str:
    """Summarise the dashboard state into at most *max_length_chars* characters.

    The model gets two attempts; after that :data:`FALLBACK_INSIGHTS` is
    returned instead of raising.
    """

    prompt = "\n\n".join(
        [
            _section("Metrics", [f"- {k}: {v}" for k, v in (stats or {}).items()], "(none)"),
            _section("Themes", [f"- {t}" for t in themes or ()], "(no explicit themes)"),
            _section(
                "Critical feedback excerpts",
                [f'"{e}"' for e in excerpts],
                "(no critical feedback)",
            ),
        ]
    )
    messages = [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]

    for attempt in range(1, ATTEMPTS + 1):
        try:
            response = chat_completion(
                messages, temperature=temperature, max_tokens=max_tokens
            )
            return _clip(reply_content(response), max_length_chars)
        except Exception as exc:  # noqa: BLE001
            _logger.warning("Insights attempt %d/%d failed: %s", attempt, ATTEMPTS, exc)

    return FALLBACK_INSIGHTS
