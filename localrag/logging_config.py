"""
Logging configuration for localrag.
structlog renders either coloured console lines or one JSON object per event.
"""

import logging
import sys
from typing import List

import structlog

# Chatty third-party loggers; pypdf warns on every malformed object it skips.
QUIET_LOGGERS = ("pypdf", "httpx", "openai", "aiohttp.access", "sentence_transformers")


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]


def _renderers(json_logs: bool) -> List:
    if json_logs:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    ]


def setup_logging(log_level: str = "INFO", json_logs: bool = False):
    """
    Configure structured logging for the service.

    Safe to call again: create_app() reconfigures from Settings after the
    import-time defaults below. Library loggers listed in QUIET_LOGGERS are
    held at WARNING unless log_level is DEBUG.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    structlog.configure(
        processors=_shared_processors() + _renderers(json_logs),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    return structlog.get_logger("localrag")


logger = setup_logging()
