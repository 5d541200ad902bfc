import logging

import structlog

from src.config import settings


def configure_logging(level: str = settings.log_level, json_output: bool = settings.log_json) -> None:
    """Set up structlog once per process; JSON lines in deployed environments."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
