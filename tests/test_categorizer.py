"""Tests for keyword categorization and key phrase extraction."""
from __future__ import annotations

import pytest

from survey_insights.analysis.categories import (
    CATEGORY_KEYWORDS,
    Categorizer,
    category_relevance,
)
from survey_insights.analysis.key_phrases import KeyPhraseExtractor
from survey_insights.analysis.models import GENERAL_FEEDBACK


def test_support_example_is_categorized():
    categories = Categorizer().categorize(
        "The support team was absolutely terrible and unresponsive"
    )

    names = [c.name for c in categories]
    assert names[0] == "Support"
    assert categories[0].relevance == pytest.approx(2 / 6 * 2)
    # "unresponsive" contains "responsive"
    assert "Performance" in names


def test_no_match_falls_back_to_general_feedback():
    categories = Categorizer().categorize("Meh.")

    assert len(categories) == 1
    assert categories[0].name == GENERAL_FEEDBACK
    assert categories[0].relevance == 0.7
    assert categories[0].score == 0.7


def test_single_keyword_does_not_clear_threshold():
    # 1/7 * 2 ≈ 0.286 for Timeline
    categories = Categorizer().categorize("deadline")

    assert [c.name for c in categories] == [GENERAL_FEEDBACK]


def test_at_most_three_categories_sorted_by_relevance():
    text = (
        "Great communication and quick updates, the support staff helped with "
        "the interface design, price and cost were fine, the quality of work good"
    )

    categories = Categorizer().categorize(text)

    assert len(categories) == 3
    scores = [c.score for c in categories]
    assert scores == sorted(scores, reverse=True)
    assert all(c.relevance > 0.3 for c in categories)


def test_relevance_is_clamped_to_one():
    text = "support help assistance service team staff"

    assert category_relevance(text, CATEGORY_KEYWORDS["Support"]) == 1.0


def test_general_feedback_never_matches_by_keyword():
    assert category_relevance("general feedback", CATEGORY_KEYWORDS[GENERAL_FEEDBACK]) == 0.0


def test_categorize_handles_non_string():
    assert Categorizer().categorize(None)[0].name == GENERAL_FEEDBACK


# ---------------------------------------------------------------------------
# Key phrases
# ---------------------------------------------------------------------------


def test_key_phrases_example():
    phrases = KeyPhraseExtractor().extract(
        "The support team was absolutely terrible and unresponsive"
    )

    assert phrases == ["support", "team", "absolutely", "terrible", "unresponsive"]


def test_key_phrases_frequency_order_and_limit():
    text = (
        "Dashboard dashboard dashboard! Reports reports, exports. "
        "Filters, widgets, charts, alerts."
    )

    phrases = KeyPhraseExtractor().extract(text)

    assert phrases[:2] == ["dashboard", "reports"]
    assert len(phrases) == 5


def test_key_phrases_skip_stop_words_and_short_tokens():
    phrases = KeyPhraseExtractor().extract("This was very good, just like that. Wow ok")

    assert phrases == []


def test_key_phrases_custom_limit():
    phrases = KeyPhraseExtractor(limit=2).extract("alpha beta gamma delta")

    assert phrases == ["alpha", "beta"]
