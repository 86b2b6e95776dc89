"""Recurring-theme extraction over survey answers."""
from __future__ import annotations

from typing import Iterable, List, Sequence

from survey_insights.analysis.replies import reply_content, string_array
from survey_insights.openai_client import chat_completion

_SYSTEM_PROMPT = (
    "You analyse customer survey feedback. Given a list of answers, name the "
    "recurring problems or praise behind them as short noun phrases. Reply "
    'ONLY with a minified JSON array of strings, e.g. ["response times", '
    '"pricing clarity"].'
)


def _dedupe(themes: Iterable[str], limit: int) -> List[str]:
    """Collapse whitespace, drop blanks and case-insensitive repeats."""
    seen = set()
    out: List[str] = []
    for theme in themes:
        cleaned = " ".join(theme.split())
        key = cleaned.casefold()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        out.append(cleaned)
        if len(out) == limit:
            break
    return out


def extract_themes(
    answers: Sequence[str], *, max_themes: int = 5, temperature: float = 0.0
) -> List[str]:
    """Return up to *max_themes* themes found in *answers*.

    Raises ``ValueError`` when the reply cannot be parsed; the digest builder
    catches it and renders without themes.
    """

    if not answers:
        return []

    bullet_list = "\n".join(f"- {answer}" for answer in answers)
    messages = [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {
            "role": "user",
            "content": (
                f"List at most {max_themes} themes for these survey answers:\n"
                f"{bullet_list}"
            ),
        },
    ]

    response = chat_completion(messages, temperature=temperature)
    return _dedupe(string_array(reply_content(response)), max_themes)
