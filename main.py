#!/usr/bin/env python3
"""Entry point for Email Reminder Service.

Runs the REST API under uvicorn. The reminder sweep starts with the API in the
same process (see api_server.lifespan), so this is the only thing to launch.
"""

import uvicorn

from config import settings
from logger_config import setup_logger

logger = setup_logger(__name__, 'service.log')


def main():
    """Start the API server and the reminder sweep."""
    logger.info("=" * 60)
    logger.info("Email Reminder Service - Startup")
    logger.info("=" * 60)
    logger.info(f"  - API Server: http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info(f"  - API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs")
    if settings.WORKER_ENABLED:
        logger.info(f"  - Reminder Sweep: every {settings.WORKER_CHECK_INTERVAL}s")
    else:
        logger.info("  - Reminder Sweep: disabled")
    logger.info(f"  - Recipients configured: {len(settings.recipients)}")

    uvicorn.run(
        "api_server:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="info"
    )


if __name__ == "__main__":
    main()
