#!/usr/bin/env python3
"""
Logging setup for command-line entry points.

Library modules only create module loggers; handlers are configured here,
once, from the loaded configuration.
"""

import logging
from typing import Any, Dict

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(config: Dict[str, Any]) -> int:
    """
    Apply `config["logging"]["level"]` to the root logger.

    Unknown level names fall back to WARNING. Returns the numeric level used.
    """
    name = str(config.get("logging", {}).get("level", "WARNING")).strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    return level
