"""Logging configuration for the search backend.

structlog renders key/value events to stdout; third-party loggers that chatter
on every outbound search request are held at WARNING.
"""

import logging
import sys

import structlog

QUIET_LOGGERS = ("asyncio", "aiohttp.client", "aiosqlite")


def configure_logging(debug_mode: bool = False, log_level: str = "INFO"):
    """Configure structlog and standard logging.

    Args:
        debug_mode: Force DEBUG regardless of ``log_level``
        log_level: Level name from settings, e.g. "INFO" or "WARNING"
    """
    level = logging.DEBUG if debug_mode else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return level
