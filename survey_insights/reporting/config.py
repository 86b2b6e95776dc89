"""Configuration constants for the metrics pipeline."""
from __future__ import annotations

import os

# Number of most recent responses run through text analysis per request
ANALYSIS_WINDOW: int = int(os.getenv("METRICS_ANALYSIS_WINDOW", "50"))

# Answers must be longer than this many characters to be analyzed
MIN_TEXT_LENGTH: int = int(os.getenv("METRICS_MIN_TEXT_LENGTH", "10"))

# Caps on the list sections of DashboardMetrics
MAX_CRITICAL_ISSUES: int = int(os.getenv("METRICS_MAX_CRITICAL_ISSUES", "10"))
MAX_ACTIVITY: int = int(os.getenv("METRICS_MAX_ACTIVITY", "20"))
RECENT_RESPONSES: int = int(os.getenv("METRICS_RECENT_RESPONSES", "15"))
RECENT_SURVEYS: int = int(os.getenv("METRICS_RECENT_SURVEYS", "5"))

# Worker threads used for per-field analysis inside one request
MAX_WORKERS: int = int(os.getenv("METRICS_MAX_WORKERS", "4"))

# Critical issue detection (score <= threshold and confidence >= minimum)
CRITICAL_SCORE_THRESHOLD: float = float(
    os.getenv("METRICS_CRITICAL_SCORE_THRESHOLD", "0.3")
)
CRITICAL_MIN_CONFIDENCE: float = float(
    os.getenv("METRICS_CRITICAL_MIN_CONFIDENCE", "0.7")
)

# A response counts as complete at or above this completion rate (0–1)
COMPLETION_THRESHOLD: float = float(os.getenv("METRICS_COMPLETION_THRESHOLD", "0.8"))

# Critical issue excerpts longer than this are truncated
MAX_ISSUE_TEXT: int = int(os.getenv("METRICS_MAX_ISSUE_TEXT", "200"))

# Maximum number of themes listed in the digest
MAX_THEMES: int = int(os.getenv("DIGEST_MAX_THEMES", "5"))

# Maximum emojis in the digest sentiment bar
MAX_EMOJI_BAR: int = int(os.getenv("DIGEST_MAX_EMOJI_BAR", "20"))
