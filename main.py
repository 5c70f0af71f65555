"""
Main entrypoint: FastAPI server with the alert scheduler in a background thread.

The scheduler is started and stopped by the app lifespan, so it runs one cycle
at startup and then on CHECK_SCHEDULE. On SIGINT/SIGTERM uvicorn drains
in-flight requests, the lifespan stops the scheduler and waits for the cycle
in progress (bounded), then the process exits.

Env: DB_PATH, CONFIG_PATH, TARGETS_DB_URL, TOKEN, MUTE_SECRET, SIFA_URL,
CHECK_SCHEDULE, NOTIFY_WEBHOOK_URL / POSTMARK_API_KEY, API_HOST, API_PORT, etc.

API-only deployments can also run: uvicorn backend_sifa.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_sifa.sifa_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Build the app from env settings and serve it with uvicorn."""
    import uvicorn

    from backend_sifa.api_server.app import app
    from backend_sifa.config import get_settings

    settings = get_settings()
    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        timeout_graceful_shutdown=30,
    )


if __name__ == "__main__":
    main()
