"""Aggregate stored survey responses into :class:`DashboardMetrics`."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

from survey_insights.analysis.analyzer import ResponseAnalyzer
from survey_insights.analysis.models import AnalysisResult
from survey_insights.exceptions import DataSourceError, EmptyScopeError
from survey_insights.reporting import config
from survey_insights.reporting.models import (
    UNKNOWN_SURVEY,
    ActivityItem,
    CriticalIssue,
    DashboardMetrics,
    SentimentDistribution,
)
from survey_insights.store import (
    MetricsScope,
    Project,
    ResponseStore,
    Survey,
    SurveyResponse,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)

# (response, answer key, answer text)
_Field = Tuple[SurveyResponse, str, str]


def truncate_text(text: str, limit: int = config.MAX_ISSUE_TEXT) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def text_fields(response: SurveyResponse) -> List[Tuple[str, str]]:
    """Return ``(key, value)`` answer pairs worth analyzing.

    Non-string and short values are skipped silently.
    """
    data = response.response_data
    if not isinstance(data, Mapping):
        return []
    return [
        (key, value)
        for key, value in data.items()
        if isinstance(value, str) and len(value) > config.MIN_TEXT_LENGTH
    ]


class MetricsAggregator:
    """Compute dashboard metrics over a scope of surveys.

    Every call re-reads the store; nothing is cached between requests.
    """

    def __init__(
        self,
        store: ResponseStore,
        analyzer: Optional[ResponseAnalyzer] = None,
        *,
        max_workers: int = config.MAX_WORKERS,
    ) -> None:
        self.store = store
        self.analyzer = analyzer or ResponseAnalyzer()
        self.max_workers = max(1, max_workers)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compute_metrics(self, scope: Optional[MetricsScope] = None) -> DashboardMetrics:
        """Return fresh :class:`DashboardMetrics` for *scope*.

        Raises
        ------
        DataSourceError
            If the store cannot be read.
        EmptyScopeError
            If *scope* matches no surveys.
        """
        scope = scope or MetricsScope()
        surveys, responses, projects = self._fetch(scope)
        now_iso = datetime.datetime.now(datetime.timezone.utc).isoformat()

        total_responses = len(responses)
        completed = sum(
            1 for r in responses if r.completion_rate >= config.COMPLETION_THRESHOLD
        )
        completion_rate = completed / total_responses if total_responses else 0.0

        survey_titles = {s.id: s.title for s in surveys}

        fields: List[_Field] = [
            (response, key, value)
            for response in responses[-config.ANALYSIS_WINDOW :]
            for key, value in text_fields(response)
        ]
        results = self._analyze_all([text for _, _, text in fields])

        sentiment_sum = 0.0
        sentiment_count = 0
        distribution = SentimentDistribution()
        critical: List[CriticalIssue] = []

        for (response, key, text), result in zip(fields, results):
            if result is None:
                # Failed analysis counts as a neutral sample
                score, confidence = 0.5, 0.0
            else:
                score, confidence = result.sentiment.score, result.sentiment.confidence

            sentiment_sum += score
            sentiment_count += 1
            distribution.add(score)

            if (
                score <= config.CRITICAL_SCORE_THRESHOLD
                and confidence >= config.CRITICAL_MIN_CONFIDENCE
            ):
                critical.append(
                    CriticalIssue(
                        id=f"{response.id}-{key}",
                        text=truncate_text(text),
                        sentiment=score,
                        survey=survey_titles.get(response.survey_id) or UNKNOWN_SURVEY,
                        timestamp=(
                            response.created_at.isoformat()
                            if response.created_at
                            else now_iso
                        ),
                    )
                )

        avg_sentiment = sentiment_sum / sentiment_count if sentiment_count else 0.5

        # Most negative first; sorted() is stable so equal scores keep scan order
        critical = sorted(critical, key=lambda issue: issue.sentiment)

        metrics = DashboardMetrics(
            total_surveys=len(surveys),
            total_responses=total_responses,
            avg_sentiment=avg_sentiment,
            completion_rate=completion_rate,
            sentiment_distribution=distribution,
            critical_issues=critical[: config.MAX_CRITICAL_ISSUES],
            recent_activity=build_recent_activity(surveys, responses, projects, now_iso),
        )
        logger.info(
            "Computed metrics scope=%s surveys=%d responses=%d scored_fields=%d critical=%d",
            scope,
            metrics.total_surveys,
            metrics.total_responses,
            sentiment_count,
            len(critical),
        )
        return metrics

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch(
        self, scope: MetricsScope
    ) -> Tuple[List[Survey], List[SurveyResponse], List[Project]]:
        try:
            surveys = list(self.store.find_surveys(scope))
            responses = list(self.store.find_responses(scope))
            projects = list(self.store.find_projects())
        except DataSourceError:
            raise
        except Exception as exc:
            raise DataSourceError(f"Response store unavailable: {exc}") from exc

        if not surveys:
            raise EmptyScopeError(f"No surveys found for scope {scope}")
        return surveys, responses, projects

    def _safe_analyze(self, text: str) -> Optional[AnalysisResult]:
        try:
            return self.analyzer.analyze(text)
        except Exception as exc:  # noqa: BLE001 – one bad field must not abort the batch
            logger.warning("Analysis failed for answer field: %s", exc)
            return None

    def _analyze_all(self, texts: Sequence[str]) -> List[Optional[AnalysisResult]]:
        if not texts:
            return []
        if self.max_workers == 1 or len(texts) == 1:
            return [self._safe_analyze(t) for t in texts]
        # map() yields in submission order, independent of completion order
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(self._safe_analyze, texts))


def build_recent_activity(
    surveys: Sequence[Survey],
    responses: Sequence[SurveyResponse],
    projects: Sequence[Project],
    now_iso: str,
) -> List[ActivityItem]:
    """Merge newest responses and published surveys, newest first."""
    survey_by_id: Dict[str, Survey] = {s.id: s for s in surveys}
    project_names: Dict[str, str] = {p.id: p.name for p in projects}

    def _project_name(survey: Optional[Survey]) -> Optional[str]:
        if survey is None or survey.project_id is None:
            return None
        return project_names.get(survey.project_id)

    entries: List[Tuple[datetime.datetime, ActivityItem]] = []

    recent_responses = sorted(
        responses, key=lambda r: r.created_at or _EPOCH, reverse=True
    )[: config.RECENT_RESPONSES]
    for response in recent_responses:
        survey = survey_by_id.get(response.survey_id)
        title = survey.title if survey else None
        entries.append(
            (
                response.created_at or _EPOCH,
                ActivityItem(
                    id=response.id,
                    type="response_created",
                    description=f'New response received for "{title or UNKNOWN_SURVEY}"',
                    timestamp=(
                        response.created_at.isoformat() if response.created_at else now_iso
                    ),
                    survey_title=title,
                    project_name=_project_name(survey),
                ),
            )
        )

    published = sorted(
        (s for s in surveys if s.status == "PUBLISHED"),
        key=lambda s: s.last_modified or _EPOCH,
        reverse=True,
    )[: config.RECENT_SURVEYS]
    for survey in published:
        modified = survey.last_modified
        entries.append(
            (
                modified or _EPOCH,
                ActivityItem(
                    id=survey.id,
                    type="survey_published",
                    description=f'Survey "{survey.title}" was published',
                    timestamp=modified.isoformat() if modified else now_iso,
                    survey_title=survey.title,
                    project_name=_project_name(survey),
                ),
            )
        )

    entries.sort(key=lambda entry: entry[0], reverse=True)
    return [item for _, item in entries[: config.MAX_ACTIVITY]]
