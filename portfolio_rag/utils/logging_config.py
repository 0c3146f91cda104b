"""
Centralized logging configuration for the portfolio assistant.
"""

import logging
import sys
from typing import Optional

from .config import AppConfig

PACKAGE_LOGGER = 'portfolio_rag'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Client libraries that log every HTTP round trip at INFO
NOISY_LOGGERS = ('botocore', 'boto3', 'urllib3', 'opensearch')


def resolve_level(level_name: str) -> int:
    """Map a LOG_LEVEL name to a logging level, INFO when the name is unknown."""
    level = logging.getLevelName((level_name or '').upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(config: Optional[AppConfig] = None) -> None:
    """
    Route logs to stdout at the configured level.

    Args:
        config: AppConfig instance, uses default if None
    """
    if config is None:
        from .config import config as default_config
        config = default_config

    level = resolve_level(config.log_level)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger; its level is inherited from the package logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
