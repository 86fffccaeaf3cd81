"""Structured logging for the signal service.

Every component logs through ``get_logger(name)`` with snake_case events.
The live instrument, timeframe and session generation sit in context vars, so
each line written while a session runs is tagged with them.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, List

import structlog

SESSION_CONTEXT_KEYS = ("instrument", "timeframe", "generation")


def _processors(json_logs: bool) -> List[Any]:
    chain: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        chain.append(structlog.processors.format_exc_info)
        chain.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        # ConsoleRenderer prints exc_info itself
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def configure_logging(log_level: str = "INFO", *, json_logs: bool = True) -> None:
    """JSON lines on stdout by default; ``json_logs=False`` for a readable console."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=_processors(json_logs),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_session_context(instrument: str, timeframe: str, generation: int) -> None:
    structlog.contextvars.bind_contextvars(instrument=instrument, timeframe=timeframe, generation=generation)


def clear_session_context() -> None:
    structlog.contextvars.unbind_contextvars(*SESSION_CONTEXT_KEYS)


def get_logger(component: str, **kwargs: Any) -> structlog.BoundLogger:
    return structlog.get_logger().bind(component=component, **kwargs)
