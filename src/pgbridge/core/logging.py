"""Logging configuration using structlog.

Logs go to stderr so stdout stays free for result blobs. An embedded bridge
is quiet by default; PGBRIDGE_LOG_LEVEL or the CLI --verbose flag raise it.
"""

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL_ENV = "PGBRIDGE_LOG_LEVEL"

_LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class _LazyStderrFactory:
    """Look up sys.stderr per logger instead of once at configure() time.

    CliRunner and pytest capture swap sys.stderr between invocations, so a
    handle captured up front goes stale.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def resolve_log_level(level: str | None = None) -> str:
    """Explicit level > PGBRIDGE_LOG_LEVEL > warning.

    Unknown names fall back to warning.
    """
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "warning").lower()
    return name if name in _LOG_LEVELS else "warning"


def setup_logging(level: str | None = None) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _LOG_LEVELS[resolve_log_level(level)]
        ),
        context_class=dict,
        logger_factory=_LazyStderrFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger, optionally bound with a name.

    Call inside functions, after setup_logging(), never at module level.
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger
