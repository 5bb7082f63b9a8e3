"""Structured logging configuration for the D&D Director engine.

Logging goes through structlog so that the campaign and tier bound at the
start of a turn (``bind_context``) show up on every entry emitted while
handling it: tool dispatches, provider failures, round advances. Development
output is human-readable; production output is one JSON object per line.

Provider errors are logged with their text, and SDK error text can quote
the request's API key, so every entry passes through ``mask_api_keys``
before rendering.

Example:
    >>> from dnd_director.core.logging import configure_logging_from_settings, get_logger
    >>> configure_logging_from_settings()
    >>> logger = get_logger(__name__)
    >>> logger.info("Round advanced", campaign_id="c-1", round=12, chapter=1)
"""

from __future__ import annotations

import logging
import re
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from dnd_director.core.config import Settings


APP_NAME = "dnd_director"

# OpenAI secret keys: "sk-" and project keys "sk-proj-"
_API_KEY_PATTERN = re.compile(r"sk-[A-Za-z0-9_\-]{8,}")
_MASK = "sk-***"

# Libraries that log every provider round trip at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every entry with the application name."""
    event_dict["app"] = APP_NAME
    return event_dict


def mask_api_keys(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Replace anything shaped like an OpenAI key in string values.

    Args:
        logger: The wrapped logger instance.
        method_name: Name of the logging method called.
        event_dict: The event dictionary to scrub.

    Returns:
        The event dictionary with keys masked.
    """
    for key, value in event_dict.items():
        if isinstance(value, str) and "sk-" in value:
            event_dict[key] = _API_KEY_PATTERN.sub(_MASK, value)
    return event_dict


def configure_logging(*, level: str = "INFO", json_format: bool = False) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Emit JSON lines instead of console output.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        mask_api_keys,
    ]

    if json_format:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=numeric_level,
        stream=sys.stdout,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def configure_logging_from_settings(settings: Settings | None = None) -> None:
    """Configure logging from ``Settings.log_level`` and ``Settings.log_json``.

    Debug mode forces DEBUG regardless of the configured level.
    """
    from dnd_director.core.config import get_settings

    settings = settings or get_settings()
    level = "DEBUG" if settings.debug else settings.log_level
    configure_logging(level=level, json_format=settings.log_json)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, typically with ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables that will be included in all subsequent logs.

    Example:
        >>> bind_context(campaign_id="c-1", tier="scene")
        >>> logger.info("Tool dispatched", tool="roll_dice")  # carries campaign_id and tier
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear bound context at the end of a turn or round advance."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "add_app_context",
    "mask_api_keys",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
