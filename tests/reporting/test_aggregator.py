"""Tests for metrics aggregation over stored responses."""
from __future__ import annotations

import datetime

import pytest

from survey_insights.analysis.analyzer import ResponseAnalyzer
from survey_insights.analysis.providers import ProviderScore, SentimentProvider
from survey_insights.analysis.sentiment import SentimentAnalyzer
from survey_insights.exceptions import DataSourceError, EmptyScopeError
from survey_insights.reporting.aggregator import (
    MetricsAggregator,
    build_recent_activity,
    text_fields,
    truncate_text,
)
from survey_insights.store import (
    InMemoryResponseStore,
    MetricsScope,
    Project,
    Survey,
    SurveyResponse,
)

UTC = datetime.timezone.utc


class _TableProvider(SentimentProvider):
    """Return scores from a lookup table (0.5 for unknown text)."""

    name = "table"
    confidence = 0.9

    def __init__(self, table):
        self.table = table

    def score(self, text):
        return ProviderScore(score=self.table.get(text, 0.5), confidence=self.confidence)


def _analyzer(table):
    return ResponseAnalyzer(sentiment=SentimentAnalyzer(providers=[_TableProvider(table)]))


def _ts(minute):
    return datetime.datetime(2024, 5, 1, 12, minute, tzinfo=UTC)


def _store(responses, surveys=None, projects=None):
    surveys = surveys or [
        Survey(id="s1", title="Onboarding", project_id="p1", status="PUBLISHED")
    ]
    projects = projects or [Project(id="p1", name="Website")]
    return InMemoryResponseStore(surveys=surveys, responses=responses, projects=projects)


def _response(rid, answers, *, rate=1.0, minute=0, survey_id="s1"):
    return SurveyResponse(
        id=rid,
        survey_id=survey_id,
        response_data=answers,
        completion_rate=rate,
        created_at=_ts(minute),
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_text_fields_skips_short_and_non_string():
    response = _response(
        "r1",
        {"q1": "exactly10!", "q2": "this is long enough", "q3": 5, "q4": ["a list of words"]},
    )

    assert text_fields(response) == [("q2", "this is long enough")]


def test_truncate_text():
    assert truncate_text("short") == "short"
    long_text = "x" * 250
    assert truncate_text(long_text) == "x" * 200 + "..."


# ---------------------------------------------------------------------------
# compute_metrics
# ---------------------------------------------------------------------------


def test_basic_metrics():
    table = {
        "Absolutely loved the kickoff": 0.9,
        "The handover was a total mess": 0.1,
        "It was fine overall I guess": 0.5,
    }
    store = _store(
        [
            _response("r1", {"q1": "Absolutely loved the kickoff"}, rate=1.0, minute=1),
            _response("r2", {"q1": "The handover was a total mess"}, rate=0.5, minute=2),
            _response("r3", {"q1": "It was fine overall I guess", "q2": "ok"}, rate=0.8, minute=3),
        ]
    )

    metrics = MetricsAggregator(store, _analyzer(table)).compute_metrics()

    assert metrics.total_surveys == 1
    assert metrics.total_responses == 3
    assert metrics.completion_rate == pytest.approx(2 / 3)
    assert metrics.avg_sentiment == pytest.approx(0.5)
    assert metrics.sentiment_distribution.to_dict() == {
        "positive": 1,
        "neutral": 1,
        "negative": 1,
    }
    assert len(metrics.critical_issues) == 1
    issue = metrics.critical_issues[0]
    assert issue.id == "r2-q1"
    assert issue.survey == "Onboarding"
    assert issue.sentiment == pytest.approx(0.1)
    assert issue.timestamp == _ts(2).isoformat()


def test_distribution_boundaries_go_to_outer_buckets():
    table = {"boundary positive": 0.6, "boundary negative": 0.4}
    store = _store(
        [
            _response("r1", {"q1": "boundary positive"}),
            _response("r2", {"q1": "boundary negative"}),
        ]
    )

    metrics = MetricsAggregator(store, _analyzer(table), max_workers=1).compute_metrics()

    assert metrics.sentiment_distribution.to_dict() == {
        "positive": 1,
        "neutral": 0,
        "negative": 1,
    }


def test_critical_issues_sorted_and_capped():
    answers = {f"complaint number {i:02d}": 0.3 - i * 0.02 for i in range(12)}
    responses = [
        _response(f"r{i}", {"q1": text}, minute=i) for i, text in enumerate(answers)
    ]

    metrics = MetricsAggregator(_store(responses), _analyzer(answers)).compute_metrics()

    scores = [issue.sentiment for issue in metrics.critical_issues]
    assert len(scores) == 10
    assert scores == sorted(scores)
    assert metrics.critical_issues[0].id == "r11-q1"


def test_low_confidence_is_not_critical():
    """Rule-based scoring (confidence 0.65) never flags critical issues."""

    store = _store([_response("r1", {"q1": "terrible awful horrible worst"})])
    analyzer = ResponseAnalyzer(sentiment=SentimentAnalyzer(providers=[]))

    metrics = MetricsAggregator(store, analyzer).compute_metrics()

    assert metrics.sentiment_distribution.negative == 1
    assert metrics.critical_issues == []


_LONG_TEXT = "terrible service " * 700
_NON_ASCII_TEXT = "Le service était très lent 😡 ひどい対応でした"


@pytest.mark.parametrize(
    "text,issue_length",
    [
        ("", None),
        (_LONG_TEXT, 203),
        (_NON_ASCII_TEXT, len(_NON_ASCII_TEXT)),
    ],
    ids=["empty", "very-long", "non-ascii"],
)
def test_unusual_answer_text_yields_well_formed_metrics(text, issue_length):
    store = _store([_response("r1", {"q1": text})])

    metrics = MetricsAggregator(store, _analyzer({text: 0.1})).compute_metrics()

    payload = metrics.to_dict()
    assert payload["totalResponses"] == 1
    assert 0.0 <= payload["avgSentiment"] <= 1.0
    if issue_length is None:
        assert metrics.sentiment_distribution.total == 0
        assert metrics.critical_issues == []
    else:
        assert metrics.sentiment_distribution.negative == 1
        assert len(metrics.critical_issues) == 1
        assert len(metrics.critical_issues[0].text) == issue_length


def test_critical_text_is_truncated():
    text = "bad " * 80
    store = _store([_response("r1", {"q1": text})])

    metrics = MetricsAggregator(store, _analyzer({text: 0.05})).compute_metrics()

    assert metrics.critical_issues[0].text.endswith("...")
    assert len(metrics.critical_issues[0].text) == 203


def test_no_scoreable_text_defaults_to_neutral_average():
    store = _store(
        [
            _response("r1", {}),
            _response("r2", {"q1": "short", "q2": 7}),
        ]
    )

    metrics = MetricsAggregator(store, _analyzer({})).compute_metrics()

    assert metrics.total_responses == 2
    assert metrics.avg_sentiment == 0.5
    assert metrics.sentiment_distribution.total == 0


def test_empty_response_data_does_not_affect_average():
    store = _store(
        [
            _response("r1", {}),
            _response("r2", {"q1": "really positive words"}),
        ]
    )

    metrics = MetricsAggregator(
        store, _analyzer({"really positive words": 0.9})
    ).compute_metrics()

    assert metrics.avg_sentiment == pytest.approx(0.9)


def test_only_latest_fifty_responses_are_analyzed():
    responses = [
        _response(f"r{i}", {"q1": f"answer text {i:03d}"}, minute=i % 60) for i in range(60)
    ]
    # first ten responses would be critical if they were inside the window
    table = {f"answer text {i:03d}": 0.05 if i < 10 else 0.7 for i in range(60)}

    metrics = MetricsAggregator(_store(responses), _analyzer(table)).compute_metrics()

    assert metrics.total_responses == 60
    assert metrics.sentiment_distribution.total == 50
    assert metrics.critical_issues == []


def test_failed_field_counts_as_neutral():
    class _FlakyAnalyzer:
        def __init__(self):
            self.inner = _analyzer({"a very happy customer": 0.9})

        def analyze(self, text):
            if "explode" in text:
                raise RuntimeError("boom")
            return self.inner.analyze(text)

    store = _store(
        [
            _response("r1", {"q1": "a very happy customer"}),
            _response("r2", {"q1": "please explode now"}),
        ]
    )

    metrics = MetricsAggregator(store, _FlakyAnalyzer()).compute_metrics()

    assert metrics.avg_sentiment == pytest.approx(0.7)
    assert metrics.sentiment_distribution.to_dict() == {
        "positive": 1,
        "neutral": 1,
        "negative": 0,
    }


def test_parallel_and_sequential_agree():
    table = {f"feedback entry {i}": i / 20 for i in range(20)}
    responses = [_response(f"r{i}", {"q1": t}, minute=i) for i, t in enumerate(table)]

    parallel = MetricsAggregator(_store(responses), _analyzer(table), max_workers=4)
    sequential = MetricsAggregator(_store(responses), _analyzer(table), max_workers=1)

    first = parallel.compute_metrics().to_dict()
    second = sequential.compute_metrics().to_dict()
    for payload in (first, second):
        payload.pop("recentActivity")
    assert first == second


def test_unknown_survey_title():
    surveys = [Survey(id="s1", title="", project_id="p1")]
    store = _store([_response("r1", {"q1": "this went badly"})], surveys=surveys)

    metrics = MetricsAggregator(store, _analyzer({"this went badly": 0.1})).compute_metrics()

    assert metrics.critical_issues[0].survey == "Unknown Survey"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


def test_empty_scope_raises():
    store = _store([])

    with pytest.raises(EmptyScopeError):
        MetricsAggregator(store, _analyzer({})).compute_metrics(MetricsScope(project_id="zzz"))


def test_store_failure_is_wrapped():
    class _BrokenStore:
        def find_surveys(self, scope):
            raise ConnectionError("db down")

        def find_responses(self, scope):
            return []

        def find_projects(self):
            return []

    with pytest.raises(DataSourceError, match="db down"):
        MetricsAggregator(_BrokenStore(), _analyzer({})).compute_metrics()


# ---------------------------------------------------------------------------
# Recent activity
# ---------------------------------------------------------------------------


def test_recent_activity_merges_and_orders():
    surveys = [
        Survey(id="s1", title="Onboarding", project_id="p1", status="PUBLISHED", updated_at=_ts(30)),
        Survey(id="s2", title="Draft", project_id="p1", status="DRAFT", updated_at=_ts(40)),
    ]
    responses = [_response(f"r{i}", {}, minute=i * 10) for i in range(1, 5)]

    items = build_recent_activity(surveys, responses, [Project(id="p1", name="Website")], "now")

    assert [i.id for i in items] == ["r4", "r3", "s1", "r2", "r1"]
    assert items[0].type == "response_created"
    assert items[0].description == 'New response received for "Onboarding"'
    assert items[0].project_name == "Website"
    assert items[2].type == "survey_published"
    assert items[2].description == 'Survey "Onboarding" was published'


def test_recent_activity_caps():
    surveys = [
        Survey(id=f"s{i}", title=f"S{i}", status="PUBLISHED", created_at=_ts(i))
        for i in range(8)
    ]
    responses = [_response(f"r{i}", {}, minute=i, survey_id="s0") for i in range(30)]

    items = build_recent_activity(surveys, responses, [], "now")

    assert len(items) == 20
    kinds = [i.type for i in items]
    assert kinds.count("response_created") == 15
    assert kinds.count("survey_published") == 5
    stamps = [i.timestamp for i in items]
    assert stamps == sorted(stamps, reverse=True)


def test_mixed_naive_aware_and_missing_timestamps():
    naive = datetime.datetime(2024, 5, 1, 12, 5)
    surveys = [
        Survey(id="s1", title="Onboarding", project_id="p1", status="PUBLISHED", updated_at=naive),
        Survey(id="s2", title="Exit", project_id="p1", status="PUBLISHED"),
        Survey(id="s3", title="Pulse", project_id="p1", status="PUBLISHED", created_at=_ts(20)),
    ]
    responses = [
        SurveyResponse(id="r1", survey_id="s1", created_at=naive),
        SurveyResponse(id="r2", survey_id="s1", created_at=None),
        SurveyResponse(id="r3", survey_id="s1", created_at=_ts(10)),
    ]
    store = _store(responses, surveys=surveys)

    metrics = MetricsAggregator(store, _analyzer({})).compute_metrics()

    assert [i.id for i in metrics.recent_activity] == ["s3", "r3", "r1", "s1", "r2", "s2"]
    assert metrics.recent_activity[2].timestamp == "2024-05-01T12:05:00+00:00"
