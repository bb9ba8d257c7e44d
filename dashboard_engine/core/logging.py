"""
Logging Setup - Sales Dashboard Engine
dashboard_engine/core/logging.py

Configures structlog (and the stdlib root logger it renders through)
from LOG_LEVEL / LOG_FORMAT.
"""
import logging
import sys
from typing import Optional

import structlog

from dashboard_engine.config import settings

_configured = False


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None, force: bool = False) -> None:
    """
    Configure structlog processors and the stdlib root logger.

    Args:
        level: Log level name; defaults to settings.LOG_LEVEL.
        fmt: "json" or "console"; defaults to settings.LOG_FORMAT.
        force: Reconfigure even if already configured.
    """
    global _configured
    if _configured and not force:
        return

    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    renderer = (
        structlog.processors.JSONRenderer()
        if (fmt or settings.LOG_FORMAT) == "json"
        else structlog.dev.ConsoleRenderer()
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=force,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True
