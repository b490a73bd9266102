"""Logging setup for the command line tools."""

from __future__ import annotations

import logging
import os
from typing import Optional

from ..exceptions import ConfigurationError

LOG_LEVEL_ENV = "RAINBOWSTEGO_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
# Faker reports locale loading at DEBUG on import.
_QUIET_LOGGERS = ("faker",)


def configure_logging(level: Optional[str] = None) -> int:
    """Configure the root logger and return the numeric level in effect.

    *level* takes precedence over ``RAINBOWSTEGO_LOG_LEVEL``. Unknown level
    names raise :class:`ConfigurationError`.
    """
    name = (level or os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ConfigurationError(f"unknown log level '{name}'")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    for logger_name in _QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(numeric, logging.INFO))
    return numeric
