"""
Centralized Logging Configuration for the Prepigo scheduling engine.

Provides consistent logging setup with:
- Structured JSON format for production
- Human-readable format for development
- Optional file rotation for log management
"""

import os
import logging
import logging.handlers
from typing import Optional

from .config import Config

ROOT_LOGGER_NAME = 'prepigo_srs'


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
    json_format: Optional[bool] = None
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to Config.LOG_LEVEL
        log_dir: Directory for log files. Defaults to Config.LOG_DIR (None = console only)
        json_format: Use JSON format for structured logging. Defaults to Config.LOG_JSON

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = Config.LOG_LEVEL
    if log_dir is None:
        log_dir = Config.LOG_DIR
    if json_format is None:
        json_format = Config.LOG_JSON

    level = getattr(logging, str(log_level).upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    if json_format:
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(module)s", "message": "%(message)s"}'
    else:
        format_str = '%(asctime)s [%(levelname)s] %(module)s: %(message)s'

    formatter = logging.Formatter(format_str, datefmt='%Y-%m-%d %H:%M:%S')

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, 'prepigo_srs.log')
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info(f"Logging initialized: level={log_level}, dir={log_dir or '-'}")

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger by name."""
    return logging.getLogger(name)
