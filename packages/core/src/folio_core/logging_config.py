"""
Structured logging setup.

Call `configure_logging()` once at process start (the CLIs do); library code only
ever does `structlog.get_logger(__name__)`.
"""

from __future__ import annotations

import logging
import sys

import structlog

from folio_core.settings import settings


def configure_logging(*, level: str | None = None, fmt: str | None = None) -> None:
    level_name = (level or settings.log_level).upper()
    fmt = fmt or settings.log_format
    level_no = getattr(logging, level_name, logging.INFO)

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Third-party libraries (SQLAlchemy, alembic) keep using stdlib logging.
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level_no)
    logging.getLogger("sqlalchemy.engine").setLevel(max(level_no, logging.WARNING))
