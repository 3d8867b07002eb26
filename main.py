"""
Main entrypoint: FastAPI layout API with live ingestion on the same event loop.

The app lifespan builds the universe session and starts ingestion (initial
REST load, push channel, update consumer). On SIGINT/SIGTERM uvicorn shuts
down and the lifespan stops ingestion.

Env: CELESTIA_API_URL, CELESTIA_WS_URL, CELESTIA_MAX_GALAXY_AMOUNT, API_HOST, API_PORT, LOG_LEVEL, etc.

API-only (no ingestion): CELESTIA_INGESTION_ENABLED=0 uvicorn backend_celestia.api_server.app:app
"""

import os
import sys

# Configure structured JSON logging before other imports that may log
from backend_celestia.celestia_logging import get_logger
from backend_celestia.core.exceptions import ConfigError

logger = get_logger("main")


def main() -> None:
    """Validate settings, then run the API server in the main thread."""
    from backend_celestia.config import get_settings

    try:
        settings = get_settings()
        settings.grouping_config()
        settings.layout_config()
    except ConfigError as e:
        logger.error("main_config_error", error=str(e))
        sys.exit(1)

    from backend_celestia.api_server.app import app
    import uvicorn

    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        api_url=settings.api_url,
        ws_url=settings.ws_url,
    )
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
