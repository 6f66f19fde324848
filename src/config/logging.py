"""Logging configuration for the bot service."""

from __future__ import annotations

import logging
import os

# Loggers whose level can be set apart from the root level, by environment variable.
COMPONENT_LOG_LEVEL_ENV: dict[str, str] = {
    "src.intent": "INTENT_LOG_LEVEL",
    "src.generation": "GENERATION_LOG_LEVEL",
}


def configure_logging(level: str | None = None) -> None:
    """Configure Python logging for the process.

    Logs are for internal diagnostics only; user-facing replies come from `src.intent.replies`
    and the bot handlers. `INTENT_LOG_LEVEL` and `GENERATION_LOG_LEVEL` override the root level
    for the resolver and generation loggers (e.g. DEBUG to trace one instruction end to end).
    """

    log_level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    for logger_name, env_name in COMPONENT_LOG_LEVEL_ENV.items():
        component_level = os.getenv(env_name)
        if component_level:
            logging.getLogger(logger_name).setLevel(component_level.strip().upper())

    # aiogram logs every update at INFO.
    logging.getLogger("aiogram.event").setLevel(logging.WARNING)
