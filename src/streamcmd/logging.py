from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

_TRUTHY = {"1", "true", "yes", "on"}


def _debug_from_env() -> bool:
    value = os.environ.get("STREAMCMD__DEBUG", "")
    return value.strip().lower() in _TRUTHY


def setup_logging(
    *, debug: bool = False, cache_logger_on_first_use: bool = True
) -> None:
    level = logging.DEBUG if debug or _debug_from_env() else logging.INFO
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if sys.stderr.isatty():
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=cache_logger_on_first_use,
    )


def get_logger(name: str | None = None) -> Any:
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)
