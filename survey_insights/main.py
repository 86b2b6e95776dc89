"""Application bootstrap for Survey Insights.

Loads ``.env``, configures logging and serves the FastAPI app with uvicorn.
Keeping the runtime bootstrap here (instead of in ``survey_insights.api``)
ensures the API module can be imported by tests without side-effects.
"""
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv


def main() -> None:  # pragma: no cover – manual run path
    """Start the HTTP server and block until interrupted."""

    # Config modules read the environment at import time
    load_dotenv()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=os.environ.get("LOG_LEVEL", "INFO"),
    )
    logger = logging.getLogger(__name__)

    import uvicorn

    from survey_insights import config
    from survey_insights.api import create_app

    if not config.API_TOKEN:
        logger.warning("API_TOKEN is not set; every protected route will return 401.")

    app = create_app()
    logger.info("Serving Survey Insights on %s:%d", config.HOST, config.PORT)
    try:
        uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
    except KeyboardInterrupt:  # pragma: no cover
        logger.info("Shutdown requested (KeyboardInterrupt). Exiting…")
    finally:
        logger.info("Goodbye.")


if __name__ == "__main__":  # pragma: no cover
    main()
