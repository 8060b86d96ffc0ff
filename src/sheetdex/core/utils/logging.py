import logging
import sys
from typing import Optional, TextIO

import structlog

from sheetdex.core.settings import settings


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def _processors(json_logs: bool) -> list:
    chain = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    chain.append(structlog.processors.JSONRenderer() if json_logs
                 else structlog.dev.ConsoleRenderer(colors=False))
    return chain


def configure_logging(level: Optional[str] = None,
                      json_logs: Optional[bool] = None,
                      stream: Optional[TextIO] = None) -> None:
    """
    Route stdlib and structlog output to stderr.

    Plain ``logging`` records keep the %-style line format; structured run
    events (``import_started`` / ``import_finished``) are rendered by
    structlog as JSON or as key=value console lines.
    """
    log_level = (level or settings.LOG_LEVEL or "INFO").upper()
    if json_logs is None:
        json_logs = settings.LOG_JSON

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=stream or sys.stderr,
        level=getattr(logging, log_level, logging.INFO),
    )

    structlog.configure(
        processors=_processors(json_logs),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
