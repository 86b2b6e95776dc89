"""Strip respondent identifiers from feedback excerpts before publishing them."""
from __future__ import annotations

import json
import logging
import re
from typing import List, Sequence

from survey_insights.analysis.replies import ReplyFormatError, reply_content, string_array
from survey_insights.openai_client import chat_completion

logger = logging.getLogger(__name__)

BATCH_SIZE = 10

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_PHONE_RE = re.compile(r"\+?\d[\d\s().-]{7,}\d")

_SYSTEM_PROMPT = (
    "You remove personal data from survey answers. The user sends a JSON array "
    "of answers. Replace names, emails, phone numbers, account ids and company "
    "names with neutral placeholders such as 'someone' or 'the vendor', keeping "
    "meaning and tone. Reply ONLY with a JSON array of the rewritten answers, "
    "same length and order."
)


def mask_identifiers(text: str) -> str:
    """Replace email addresses and phone numbers with placeholders."""
    return _PHONE_RE.sub("[phone]", _EMAIL_RE.sub("[email]", text))


def _rewrite_batch(batch: List[str], temperature: float) -> List[str]:
    messages = [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": json.dumps(batch, ensure_ascii=False)},
    ]
    response = chat_completion(messages, temperature=temperature)
    rewritten = string_array(reply_content(response))
    if len(rewritten) != len(batch):
        raise ReplyFormatError(
            f"Expected {len(batch)} rewritten answers, got {len(rewritten)}"
        )
    return rewritten


def anonymize_excerpts(excerpts: Sequence[str], *, temperature: float = 0.3) -> List[str]:
    """Return *excerpts* rewritten without personal identifiers, in order.

    A batch the model fails on is masked locally with :func:`mask_identifiers`
    instead.
    """

    out: List[str] = []
    for start in range(0, len(excerpts), BATCH_SIZE):
        batch = list(excerpts[start : start + BATCH_SIZE])
        try:
            out.extend(_rewrite_batch(batch, temperature))
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Anonymization failed for excerpts %d-%d, masking locally: %s",
                start,
                start + len(batch) - 1,
                exc,
            )
            out.extend(mask_identifiers(e) for e in batch)
    return out
