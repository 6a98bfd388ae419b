"""Shared route dependencies.

The clock is read here, once per request, and injected into the engines;
tests override get_now to pin the reference time.
"""

from datetime import datetime

from salonscope.app.config import settings
from salonscope.etl.config import EngineConfig

engine_config = EngineConfig(
    days_ahead=settings.default_days_ahead,
    limit=settings.default_limit,
)


def get_now() -> datetime:
    return datetime.now()


def get_engine_config() -> EngineConfig:
    """Dependency for routes that run an engine."""
    return engine_config
