"""Read-side response store used by the metrics pipeline.

The production system keeps surveys and responses in a document database; the
pipeline only needs the read contracts defined by :class:`ResponseStore`.
:class:`InMemoryResponseStore` implements them over plain lists and can be
seeded from a JSON export.
"""
from __future__ import annotations

import datetime
import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Union

logger = logging.getLogger(__name__)

Timestamp = Optional[datetime.datetime]


def parse_timestamp(value: Any) -> Timestamp:
    """Coerce ISO-8601 strings (or datetimes) into aware UTC datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Ignoring unparseable timestamp %r", value)
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _normalise_rate(value: Any) -> float:
    """Completion rates are fractions; percentage values (e.g. 80) are scaled."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    rate = float(value)
    if rate > 1.0:
        rate = rate / 100.0
    return max(0.0, min(1.0, rate))


@dataclass(frozen=True)
class MetricsScope:
    """Optional project/client/organization filter for a metrics query.

    ``"all"`` and empty strings mean "no filter".
    """

    project_id: Optional[str] = None
    client_id: Optional[str] = None
    organization_id: Optional[str] = None

    def __post_init__(self) -> None:
        for name in ("project_id", "client_id", "organization_id"):
            if getattr(self, name) in ("", "all"):
                object.__setattr__(self, name, None)


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    client_id: Optional[str] = None
    organization_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            client_id=data.get("clientId"),
            organization_id=data.get("organizationId"),
        )


@dataclass(frozen=True)
class Survey:
    id: str
    title: str
    project_id: Optional[str] = None
    status: str = "DRAFT"
    organization_id: Optional[str] = None
    created_at: Timestamp = None
    updated_at: Timestamp = None

    def __post_init__(self) -> None:
        for name in ("created_at", "updated_at"):
            object.__setattr__(self, name, parse_timestamp(getattr(self, name)))

    @property
    def last_modified(self) -> Timestamp:
        return self.updated_at or self.created_at

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Survey":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            project_id=data.get("projectId"),
            status=str(data.get("status", "DRAFT")).upper(),
            organization_id=data.get("organizationId"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


@dataclass(frozen=True)
class SurveyResponse:
    id: str
    survey_id: str
    response_data: Mapping[str, Any] = field(default_factory=dict)
    completion_rate: float = 0.0
    created_at: Timestamp = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SurveyResponse":
        raw = data.get("responseData")
        return cls(
            id=str(data["id"]),
            survey_id=str(data.get("surveyId", "")),
            response_data=dict(raw) if isinstance(raw, Mapping) else {},
            completion_rate=_normalise_rate(data.get("completionRate")),
            created_at=data.get("createdAt"),
        )


class ResponseStore(Protocol):
    """Read contracts the metrics pipeline relies on."""

    def find_surveys(self, scope: MetricsScope) -> List[Survey]:
        ...

    def find_responses(self, scope: MetricsScope) -> List[SurveyResponse]:
        ...

    def find_projects(self) -> List[Project]:
        ...


class InMemoryResponseStore:
    """A thread-safe, list-backed :class:`ResponseStore`."""

    def __init__(
        self,
        surveys: Iterable[Survey] = (),
        responses: Iterable[SurveyResponse] = (),
        projects: Iterable[Project] = (),
    ) -> None:
        self._surveys: List[Survey] = list(surveys)
        self._responses: List[SurveyResponse] = list(responses)
        self._projects: List[Project] = list(projects)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InMemoryResponseStore":
        return cls(
            surveys=[Survey.from_dict(s) for s in data.get("surveys", [])],
            responses=[SurveyResponse.from_dict(r) for r in data.get("responses", [])],
            projects=[Project.from_dict(p) for p in data.get("projects", [])],
        )

    @classmethod
    def load_json(cls, path: Union[str, Path]) -> "InMemoryResponseStore":
        with open(path, encoding="utf-8") as fh:
            data: Dict[str, Any] = json.load(fh)
        store = cls.from_dict(data)
        logger.info(
            "Loaded %d surveys, %d responses, %d projects from %s",
            len(store._surveys),
            len(store._responses),
            len(store._projects),
            path,
        )
        return store

    def add_survey(self, survey: Survey) -> None:
        with self._lock:
            self._surveys.append(survey)

    def add_response(self, response: SurveyResponse) -> None:
        with self._lock:
            self._responses.append(response)

    def add_project(self, project: Project) -> None:
        with self._lock:
            self._projects.append(project)

    # ------------------------------------------------------------------
    # ResponseStore
    # ------------------------------------------------------------------

    def find_projects(self) -> List[Project]:
        with self._lock:
            return list(self._projects)

    def find_surveys(self, scope: MetricsScope) -> List[Survey]:
        with self._lock:
            surveys = list(self._surveys)
            projects = {p.id: p for p in self._projects}

        if scope.project_id:
            surveys = [s for s in surveys if s.project_id == scope.project_id]

        if scope.client_id:
            surveys = [
                s
                for s in surveys
                if s.project_id in projects
                and projects[s.project_id].client_id == scope.client_id
            ]

        if scope.organization_id:

            def _org(survey: Survey) -> Optional[str]:
                if survey.organization_id:
                    return survey.organization_id
                project = projects.get(survey.project_id or "")
                return project.organization_id if project else None

            surveys = [s for s in surveys if _org(s) == scope.organization_id]

        return surveys

    def find_responses(self, scope: MetricsScope) -> List[SurveyResponse]:
        survey_ids = {s.id for s in self.find_surveys(scope)}
        with self._lock:
            return [r for r in self._responses if r.survey_id in survey_ids]
