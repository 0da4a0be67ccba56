"""
Conduit API server entry point.

Usage:
    conduit --env production --port 8080
    python -m conduit.main --config config/development.yaml --reload
"""

import os
import logging
import argparse
from typing import List, Optional

import uvicorn
from fastapi import FastAPI

from .api.app import create_app
from .core.config import ENVIRONMENT_VARIABLE, load_config
from .core.logging import setup_logging

logger = logging.getLogger(__name__)

CONFIG_FILE_VARIABLE = "CONDUIT_CONFIG"


def build_app() -> FastAPI:
    """
    Application factory for uvicorn.

    Reads the config file from ``CONDUIT_CONFIG`` when set so reload workers
    start with the same configuration as the parent process.
    """
    config = load_config(os.getenv(CONFIG_FILE_VARIABLE))
    setup_logging(config)
    return create_app(config)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Conduit API server")
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--env", help="Environment name (development, testing, production)")
    parser.add_argument("--host", help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, help="Bind port (overrides config)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    if args.env:
        os.environ[ENVIRONMENT_VARIABLE] = args.env
    if args.config:
        os.environ[CONFIG_FILE_VARIABLE] = args.config

    config = load_config(args.config)
    setup_logging(config)

    host = args.host or config.server.host
    port = args.port or config.server.port
    reload = args.reload or config.server.reload

    logger.info("Initializing Conduit API Server")
    logger.info(f"Server configuration - Host: {host}, Port: {port}")
    logger.info(f"Reload mode: {reload}")

    if reload:
        uvicorn.run(
            "conduit.main:build_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            log_level=config.server.log_level.lower()
        )
    else:
        uvicorn.run(
            create_app(config),
            host=host,
            port=port,
            log_level=config.server.log_level.lower()
        )


if __name__ == "__main__":
    main()
