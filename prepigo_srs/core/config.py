# File: prepigo_srs/core/config.py
# Core infrastructure layer: environment-driven configuration.

import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Runtime configuration for the scheduling engine."""

    LOG_LEVEL = os.environ.get('PREPIGO_LOG_LEVEL', 'INFO')

    # No directory means console logging only.
    LOG_DIR = os.environ.get('PREPIGO_LOG_DIR') or None

    LOG_JSON = _env_flag('PREPIGO_LOG_JSON')

    # Study-day boundary used when grouping reviews by due date.
    TIMEZONE = os.environ.get('PREPIGO_TIMEZONE', 'UTC')

    # Overrides DEFAULT_SRS_SETTINGS['scheduler'] when set.
    DEFAULT_SCHEDULER = os.environ.get('PREPIGO_DEFAULT_SCHEDULER') or None

    @classmethod
    def reload(cls) -> None:
        """Re-read the environment (used by tests that patch os.environ)."""
        cls.LOG_LEVEL = os.environ.get('PREPIGO_LOG_LEVEL', 'INFO')
        cls.LOG_DIR = os.environ.get('PREPIGO_LOG_DIR') or None
        cls.LOG_JSON = _env_flag('PREPIGO_LOG_JSON')
        cls.TIMEZONE = os.environ.get('PREPIGO_TIMEZONE', 'UTC')
        cls.DEFAULT_SCHEDULER = os.environ.get('PREPIGO_DEFAULT_SCHEDULER') or None
