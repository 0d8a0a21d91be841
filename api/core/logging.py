"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)` with `event key=value` style
messages; this only wires the root handler once.
"""

from __future__ import annotations

import logging

from . import config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def configure_logging() -> None:
    global _configured
    if _configured:
        return None

    level_name = config.env_str("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)
    _configured = True
