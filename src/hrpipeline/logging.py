"""Logging utilities for the applicant pipeline."""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", *, json_logs: bool = True) -> None:
    """Configure structlog; JSON lines on stderr, or console output for humans."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    # stdout is reserved for CLI results
    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stderr)

    renderer: structlog.types.Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def bind_actor(name: str, role: str) -> None:
    """Attach the acting operator to every log line of the current context."""
    structlog.contextvars.bind_contextvars(actor=name, role=role)
