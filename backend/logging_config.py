# logging_config.py
# ============================================================================
# DJTUNEZ BACKEND: STRUCTURED LOGGING
# ============================================================================

import logging

import structlog

from config import config


def configure_logging(env: str = config.ENV, level: str = config.LOG_LEVEL) -> None:
    """Configure structlog once for the whole process."""
    renderer = (
        structlog.dev.ConsoleRenderer(colors=True)
        if env == "development"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
