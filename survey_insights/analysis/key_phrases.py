"""Frequency-based key phrase extraction."""
from __future__ import annotations

import re
from collections import Counter
from typing import FrozenSet, List, Optional

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "that",
        "with",
        "have",
        "this",
        "will",
        "your",
        "from",
        "they",
        "know",
        "want",
        "been",
        "good",
        "much",
        "some",
        "time",
        "very",
        "when",
        "come",
        "here",
        "just",
        "like",
        "long",
        "make",
        "many",
        "over",
        "such",
        "take",
        "than",
        "them",
        "well",
        "were",
    }
)

MAX_PHRASES = 5
_NON_WORD_RE = re.compile(r"[^\w\s]")


class KeyPhraseExtractor:
    """Return the most frequent meaningful tokens of a text."""

    def __init__(self, stop_words: Optional[FrozenSet[str]] = None, limit: int = MAX_PHRASES):
        self._stop_words = STOP_WORDS if stop_words is None else stop_words
        self._limit = limit

    def extract(self, text: str) -> List[str]:
        if not isinstance(text, str):
            return []

        words = _NON_WORD_RE.sub(" ", text.lower()).split()
        counts = Counter(
            w for w in words if len(w) > 3 and w not in self._stop_words
        )
        # Counter keeps insertion order and most_common() sorts stably,
        # so equal counts stay in first-seen order.
        return [word for word, _ in counts.most_common(self._limit)]
