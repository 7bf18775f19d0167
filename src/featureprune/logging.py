"""Structured logging configuration - structlog + stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

LEVELS = ("debug", "info", "warning", "error", "critical")


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    The level comes from the argument, then FEATUREPRUNE_LOG_LEVEL, then INFO.
    FEATUREPRUNE_LOG_FORMAT selects the renderer: console (default) or json.
    Logs go to stderr so they do not interleave with the rich console output.
    """
    log_level = (level or os.environ.get("FEATUREPRUNE_LOG_LEVEL", "INFO")).upper()
    if log_level == "WARN":
        log_level = "WARNING"
    if log_level.lower() not in LEVELS:
        log_level = "INFO"
    log_format = os.environ.get("FEATUREPRUNE_LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": "WARNING",
            },
            "loggers": {
                "featureprune": {"level": log_level},
            },
        }
    )
