"""
structlog setup for CNF Autodiscover.
"""

import logging
from typing import Optional

import structlog

from .config import settings


def configure_logging(
    level: Optional[str] = None, json_output: Optional[bool] = None
) -> None:
    """Configure structlog with a console or JSON renderer.

    Defaults come from ``settings.log_level`` and ``settings.log_json``.
    """
    level_name = (level or settings.log_level).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    use_json = settings.log_json if json_output is None else json_output
    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=False,
    )
