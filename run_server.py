"""Simple server runner that keeps uvicorn alive."""
import logging
import signal
import sys

import uvicorn

from jewelshop.core.config import settings

logger = logging.getLogger(__name__)


def handle_signal(sig, frame):
    logger.info(f"Received signal {sig}, shutting down gracefully...")
    sys.exit(0)


signal.signal(signal.SIGINT, handle_signal)
signal.signal(signal.SIGTERM, handle_signal)

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    logger.info(f"Starting jewelry shop backend ({settings.ENVIRONMENT})")
    uvicorn.run(
        "jewelshop.main:app",
        host="127.0.0.1",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
    )
