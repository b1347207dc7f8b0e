"""Observability helpers: structured JSON logging and CloudWatch Embedded Metrics.

Import `init_observability` and call it once before creating the FastAPI app.
Job searches report through `metric_scope` (see `logic.search_jobs`); set
``AWS_EMF_ENVIRONMENT=Local`` to print metric documents to stdout instead of
shipping them to a CloudWatch agent.
"""
from __future__ import annotations

import logging
import os

from aws_embedded_metrics import metric_scope
import structlog

__all__ = [
    "init_observability",
    "metric_scope",  # re-export for convenience
]

_HANDLER_NAME = "job-board-structlog"


def _setup_logging() -> None:
    """Configure structlog for structured logging (JSON or console)."""

    log_format = os.getenv("LOG_FORMAT", "json").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    # Define shared processors
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Choose renderer based on format
    if log_format == "json":
        final_processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors + [final_processor],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Standard logging root logger; add our handler only once per process
    root_logger = logging.getLogger()
    if not any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Silence noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def init_observability() -> None:
    """Setup logging. Call once at process start."""

    _setup_logging()

    structlog.get_logger(__name__).info("Observability initialized")
