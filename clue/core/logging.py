"""
clue/core/logging.py

Structured logging setup using structlog.

- In production: newline-delimited JSON, one event per line.
- In development: coloured, human-readable console lines with timestamps.

Student content and credentials never reach the output: ``redact_sensitive``
runs on every event and masks the values of ``code``, ``ask``, ``images``,
``src`` and any ``*api_key`` field. Log sizes and counts instead.

Usage:
    from clue.core.logging import get_logger
    logger = get_logger(__name__)
    logger.info("help_request", code_length=len(code))
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"code", "ask", "images", "src"})


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    return key in SENSITIVE_KEYS or key.endswith("api_key")


def redact_sensitive(_, __, event_dict: EventDict) -> EventDict:
    """Mask student content and API keys passed as log fields."""
    for key in event_dict:
        if _is_sensitive(key):
            event_dict[key] = REDACTED
    return event_dict


def _drop_color_message_key(_, __, event_dict: EventDict) -> EventDict:
    """Remove the `color_message` key uvicorn's formatter adds."""
    event_dict.pop("color_message", None)
    return event_dict


def setup_logging(environment: str = "development", log_level: str = "INFO") -> None:
    """Configure structlog and route stdlib logging to the same stream.

    Call once from the application lifespan.

    Args:
        environment: "development" (console) or "production" (JSON).
        log_level: Minimum level name, e.g. "DEBUG" or "INFO".
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_sensitive,
        _drop_color_message_key,
    ]

    if environment == "production":
        renderers: list[Processor] = [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=shared_processors + renderers,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn, httpx and the provider SDKs log through stdlib.
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
    # httpx logs full request URLs at INFO; keep it quiet unless debugging.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog bound logger for the given module name."""
    return structlog.get_logger(name)
