"""Runtime configuration read from the environment.

Values are resolved at import time, so ``load_dotenv()`` must run before this
module is first imported (``survey_insights.main`` takes care of that).
"""
from __future__ import annotations

import os

# Model ids used by the external sentiment providers
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-3-5-haiku-latest")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

# Per-attempt timeout for a single provider call (seconds, no retries)
PROVIDER_TIMEOUT_SECONDS: float = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "10"))

# Bearer token expected by the HTTP API; empty disables every protected route
API_TOKEN: str = os.getenv("API_TOKEN", "")

# Optional JSON file used to seed the in-memory response store
DATA_FILE: str = os.getenv("DATA_FILE", "")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
