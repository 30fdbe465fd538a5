"""
Logging configuration.

The packaged YAML config (`src/mealzone/config/logging.yaml`) is applied with
`dictConfig`, then the level is overridden from settings (`MEALZONE_LOG_LEVEL`).
"""

from __future__ import annotations

import copy
import logging.config

from mealzone.config.settings import get_logging_config, get_settings


def configure_logging() -> None:
    """Configure the Python logging system based on packaged YAML config + settings."""
    settings = get_settings()
    # The packaged config is cached; level overrides go on a private copy.
    config = copy.deepcopy(get_logging_config())

    level = settings.app.log_level.upper()
    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)
