"""
Centralized logging configuration for the Conduit API.
"""

import sys
import logging
import logging.handlers
from pathlib import Path
from datetime import datetime

from .config import AppConfig

API_LOGGER_NAME = "api_requests"


def setup_logging(config: AppConfig) -> None:
    """Setup centralized logging configuration."""
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    # Clear any existing handlers
    logging.getLogger().handlers.clear()

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    api_logger = logging.getLogger(API_LOGGER_NAME)
    api_logger.setLevel(logging.INFO)

    if config.logging.file_logging:
        log_dir = Path(config.logging.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        main_handler = logging.handlers.RotatingFileHandler(
            log_dir / "server.log",
            maxBytes=50 * 1024 * 1024,  # 50MB
            backupCount=5,
            encoding='utf-8'
        )
        main_handler.setLevel(log_level)
        main_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(main_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / "server_errors.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(error_handler)

        api_handler = logging.handlers.RotatingFileHandler(
            log_dir / "api_requests.log",
            maxBytes=20 * 1024 * 1024,  # 20MB
            backupCount=3,
            encoding='utf-8'
        )
        api_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
        api_logger.addHandler(api_handler)
        api_logger.propagate = False  # Prevent double logging

    logger = logging.getLogger(__name__)
    logger.info(f"Startup time: {datetime.now().isoformat()}")
    logger.info(f"Environment: {config.environment}")
    logger.info(f"Log level: {config.logging.level}")


def get_api_logger() -> logging.Logger:
    """Get the API requests logger."""
    return logging.getLogger(API_LOGGER_NAME)
