from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_CONFIGURED = False

# Third-party loggers that are too chatty at INFO for request-level JSON logs.
_QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "rq.worker")


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO, *, log_format: str = "json") -> None:
    """Configure structlog once per process.

    ``log_format="console"`` swaps the JSON renderer for structlog's coloured
    developer output; every other processor stays the same.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = _resolve_level(level)
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    renderer: Any = (
        structlog.dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.dict_tracebacks,
        renderer,
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True
