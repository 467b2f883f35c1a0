"""
logging_setup.py
Structured logging for earthview.

configure_logging() wires structlog onto the standard library logging module so
GUI handlers, loaders and the session all emit key/value events. JSON output is
meant for headless runs, the console renderer for the desktop viewer.
"""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        json_format: render events as JSON lines instead of the console format.
    """
    numeric_level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if json_format:
        processors.extend([
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, group_id: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, optionally bound to the active group id."""
    logger = structlog.get_logger(name)
    if group_id:
        logger = logger.bind(group_id=group_id)
    return logger
