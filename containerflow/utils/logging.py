"""Structured logging setup.

Every module logs through ``structlog.get_logger(__name__)`` with
key/value fields. Applications call :func:`setup_logging` once; the
library itself never configures logging on import.
"""

import logging
import sys
from typing import Optional

import structlog

from ..config import settings


def setup_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name, defaults to ``settings.log_level``
        json_format: Render JSON lines instead of console output,
            defaults to ``settings.log_format == "json"``
    """
    log_level = (level or settings.log_level).upper()
    if json_format is None:
        json_format = settings.log_format == "json"

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
        force=True,
    )
    # docker SDK and urllib3 are chatty at DEBUG
    for noisy in ("docker", "urllib3"):
        logging.getLogger(noisy).setLevel(max(logging.INFO, getattr(logging, log_level)))


def get_logger(name: Optional[str] = None):
    """Get a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
