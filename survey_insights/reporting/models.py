"""Data structures for the dashboard metrics payload."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

UNKNOWN_SURVEY = "Unknown Survey"


@dataclass(slots=True)
class SentimentDistribution:
    """Three-bucket histogram over every scored answer field."""

    positive: int = 0
    neutral: int = 0
    negative: int = 0

    def add(self, score: float) -> None:
        # Ties go to the outer buckets: 0.6 is positive, 0.4 is negative.
        if score >= 0.6:
            self.positive += 1
        elif score <= 0.4:
            self.negative += 1
        else:
            self.neutral += 1

    @property
    def total(self) -> int:
        return self.positive + self.neutral + self.negative

    def to_dict(self) -> Dict[str, int]:
        return {
            "positive": self.positive,
            "neutral": self.neutral,
            "negative": self.negative,
        }


@dataclass(frozen=True, slots=True)
class CriticalIssue:
    id: str
    text: str
    sentiment: float
    survey: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "sentiment": self.sentiment,
            "survey": self.survey,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class ActivityItem:
    id: str
    type: str  # "response_created" | "survey_published"
    description: str
    timestamp: str
    survey_title: Optional[str] = None
    project_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "timestamp": self.timestamp,
            "surveyTitle": self.survey_title,
            "projectName": self.project_name,
        }


@dataclass(slots=True)
class DashboardMetrics:
    """Aggregated dashboard view over one metrics scope."""

    total_surveys: int
    total_responses: int
    avg_sentiment: float
    completion_rate: float
    sentiment_distribution: SentimentDistribution
    critical_issues: List[CriticalIssue] = field(default_factory=list)
    recent_activity: List[ActivityItem] = field(default_factory=list)

    def critical_texts(self) -> List[str]:
        return [issue.text for issue in self.critical_issues]

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase JSON payload."""
        return {
            "totalSurveys": self.total_surveys,
            "totalResponses": self.total_responses,
            "avgSentiment": self.avg_sentiment,
            "completionRate": self.completion_rate,
            "sentimentDistribution": self.sentiment_distribution.to_dict(),
            "criticalIssues": [i.to_dict() for i in self.critical_issues],
            "recentActivity": [a.to_dict() for a in self.recent_activity],
        }
