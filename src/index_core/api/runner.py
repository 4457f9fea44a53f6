#!/usr/bin/env python3
"""Serve the index API with uvicorn.

Usage: python -m index_core.api.runner [--host HOST] [--port PORT]
"""

import argparse

import uvicorn

from index_core.api.app import app, config
from index_core.logging.setup import get_logger, setup_logging

logger = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Crypto index API server")
    parser.add_argument("--host", default=config.api.host)
    parser.add_argument("--port", type=int, default=config.api.port)
    args = parser.parse_args()

    setup_logging(level=config.logging.level, log_format=config.logging.format)
    logger.info(
        "api_starting",
        host=args.host,
        port=args.port,
        indexes=[d.index_symbol for d in config.active_indexes()],
    )

    try:
        # log_config=None keeps uvicorn on the structlog handler
        uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    except Exception as e:
        logger.error("api_start_failed", error=str(e))
        raise


if __name__ == "__main__":
    main()
