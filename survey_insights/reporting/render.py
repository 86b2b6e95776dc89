"""Render the dashboard digest using Jinja2 templates."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from survey_insights.reporting.context import build_digest_context
from survey_insights.reporting.models import DashboardMetrics
from survey_insights.store import MetricsScope

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).parent / "templates"

# Markdown output; HTML escaping would mangle apostrophes in quoted feedback.
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_digest(
    metrics: DashboardMetrics, scope: Optional[MetricsScope] = None
) -> str:
    """Render a markdown digest from ``DashboardMetrics``."""

    context = build_digest_context(metrics, scope)

    template = _env.get_template("digest.md.j2")
    text = template.render(**context.to_dict())
    logger.debug("Digest rendered for scope=%s len=%d", context.scope_label, len(text))
    return text
