# jnetstats/config.py

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DIFF_PERIODS = ('daily', 'weekly', 'monthly')
HISTOGRAM_PERIODS = ('daily', 'weekly', 'monthly', 'yearly')
LOG_LEVELS = ('debug', 'info', 'warning', 'error', 'critical')

DEFAULT_DIFF_PERIOD = 'weekly'
DEFAULT_ROLLING_WINDOW = 100
DEFAULT_GAMES_PLAYED_PERIOD = 'monthly'

UNKNOWN_FACTION = 'UNKNOWN'
UNKNOWN_IDENTITY = 'Unknown Identity'

DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 5000

ENV_PREFIX = 'JNETSTATS_'


@dataclass
class Settings:
    reference_path: Optional[str] = None
    diff_period: str = DEFAULT_DIFF_PERIOD
    rolling_window: int = DEFAULT_ROLLING_WINDOW
    games_played_period: str = DEFAULT_GAMES_PLAYED_PERIOD
    log_level: str = 'INFO'
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _env(name: str) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s%s=%r (not an integer); using %s.", ENV_PREFIX, name, raw, default)
        return default


def _env_choice(name: str, choices: tuple, default: str) -> str:
    raw = _env(name)
    if raw is None:
        return default
    value = raw.lower()
    if value not in choices:
        logger.warning(
            "Ignoring %s%s=%r (expected one of %s); using %s.",
            ENV_PREFIX, name, raw, ', '.join(choices), default,
        )
        return default
    return value


def load_settings() -> Settings:
    """Build settings from defaults overlaid with JNETSTATS_* environment variables."""
    return Settings(
        reference_path=_env('REFERENCE_PATH'),
        diff_period=_env_choice('DIFF_PERIOD', DIFF_PERIODS, DEFAULT_DIFF_PERIOD),
        rolling_window=_env_int('ROLLING_WINDOW', DEFAULT_ROLLING_WINDOW),
        games_played_period=_env_choice(
            'GAMES_PERIOD', HISTOGRAM_PERIODS, DEFAULT_GAMES_PLAYED_PERIOD
        ),
        log_level=_env_choice('LOG_LEVEL', LOG_LEVELS, 'info').upper(),
        host=_env('HOST') or DEFAULT_HOST,
        port=_env_int('PORT', DEFAULT_PORT),
    )
