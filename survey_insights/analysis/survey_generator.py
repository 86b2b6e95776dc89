"""AI-assisted survey drafting.

``generate_survey`` asks OpenAI for a JSON survey draft and validates it with
pydantic. Any failure (no API key, bad JSON, schema mismatch) falls back to a
fixed four-question template so the survey builder always gets a draft.
"""
from __future__ import annotations

import logging
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from survey_insights.analysis.replies import ReplyFormatError, json_object, reply_content
from survey_insights.openai_client import chat_completion

logger = logging.getLogger(__name__)

SurveyType = Literal["client-project", "event-feedback"]
QuestionType = Literal[
    "text", "comment", "radiogroup", "checkbox", "dropdown", "rating", "boolean"
]


class Question(BaseModel):
    type: QuestionType
    name: str
    title: str
    required: bool = False
    choices: Optional[List[str]] = None
    placeholder: Optional[str] = None
    rate_min: Optional[int] = Field(default=None, alias="rateMin")
    rate_max: Optional[int] = Field(default=None, alias="rateMax")
    rows: Optional[int] = None
    order: int = 0

    model_config = {"populate_by_name": True}


class SurveyDraft(BaseModel):
    name: str
    type: SurveyType
    description: str
    questions: List[Question]
    generated: bool = True

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


_PROMPT_SYSTEM = (
    "You design short customer feedback surveys. Respond ONLY with minified "
    'JSON: {"name": str, "description": str, "questions": [{"type": one of '
    "text|comment|radiogroup|checkbox|dropdown|rating|boolean, \"name\": "
    "snake_case field name, \"title\": str, \"required\": bool, \"choices\": "
    "[str] for choice questions, \"rateMin\"/\"rateMax\" for ratings, "
    "\"placeholder\" and \"rows\" for comments}]}."
)

_TYPE_FOCUS = {
    "client-project": (
        "project satisfaction, communication, deliverables, future collaboration"
    ),
    "event-feedback": (
        "event experience, content quality, logistics, future improvements"
    ),
}


def fallback_survey(survey_type: SurveyType) -> SurveyDraft:
    """Basic template used whenever generation fails."""
    likelihood = ["Very likely", "Likely", "Neutral", "Unlikely", "Very unlikely"]
    questions = [
        Question(
            type="rating",
            name="overall_satisfaction",
            title="How would you rate your overall experience?",
            required=True,
            rate_min=1,
            rate_max=5,
        ),
        Question(
            type="comment",
            name="positive_feedback",
            title="What did you like most about your experience?",
            placeholder="Please share what you enjoyed...",
            rows=3,
        ),
        Question(
            type="comment",
            name="improvement_suggestions",
            title="What areas could we improve?",
            placeholder="Please share your suggestions for improvement...",
            rows=3,
        ),
        Question(
            type="radiogroup",
            name="recommendation_likelihood",
            title="How likely are you to recommend us to others?",
            required=True,
            choices=likelihood,
        ),
    ]
    for index, question in enumerate(questions, start=1):
        question.order = index
    return SurveyDraft(
        name="Custom Survey",
        type=survey_type,
        description="AI-generated survey based on your requirements",
        questions=questions,
        generated=False,
    )


def _parse_draft(content: str, survey_type: SurveyType) -> SurveyDraft:
    payload = json_object(content)
    payload["type"] = survey_type
    draft = SurveyDraft.model_validate(payload)
    if not draft.questions:
        raise ReplyFormatError("Survey draft has no questions")
    for index, question in enumerate(draft.questions, start=1):
        question.order = index
    return draft


def generate_survey(
    prompt: str,
    survey_type: SurveyType = "client-project",
    *,
    client_name: Optional[str] = None,
    temperature: float = 0.7,
) -> SurveyDraft:
    """Draft a 4–6 question survey for *prompt*."""

    audience = f" for client {client_name}" if client_name else ""
    user_prompt = (
        f'Create a {survey_type} survey{audience} based on this request: "{prompt}". '
        "Generate 4-6 relevant questions with varied question types. "
        f"Focus on {_TYPE_FOCUS[survey_type]}."
    )
    messages = [
        {"role": "system", "content": _PROMPT_SYSTEM},
        {"role": "user", "content": user_prompt},
    ]

    try:
        response = chat_completion(messages, temperature=temperature)
        return _parse_draft(reply_content(response), survey_type)
    except (ReplyFormatError, ValidationError) as exc:
        logger.warning("Survey generation returned an unusable draft: %s", exc)
    except Exception as exc:  # noqa: BLE001 – builder always gets a draft
        logger.warning("Survey generation failed: %s", exc)
    return fallback_survey(survey_type)
