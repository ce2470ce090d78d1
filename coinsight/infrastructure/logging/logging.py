"""Logging setup using structlog.

Every component logs through `get_logger(component)` so each event carries
the component name plus whatever context the caller binds (symbol, seq, language).
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    # stderr keeps stdout free for the CLI typewriter output
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )

    renderer: Any = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str, **kwargs: Any) -> structlog.BoundLogger:
    return structlog.get_logger().bind(component=component, **kwargs)


def bind_task_context(**fields: Any) -> None:
    """Bind fields to every event logged from the current asyncio task.

    Each task runs in its own copy of the context, so fields bound inside a
    detail cycle never leak into another cycle's events.
    """
    structlog.contextvars.bind_contextvars(**fields)
