# src/etlguard/core/logging.py
"""Logging setup for hosts embedding etlguard.

etlguard modules log through structlog and never configure output on
import. A host calls configure_logging() (or configure_logging_from_settings()
with the ``logging`` block of ValidationSettings) once at startup. Both
structlog events and plain stdlib records then render through the same
processor chain, as JSON lines or as console output.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

from etlguard.core.config import LoggingSettings

# Chatty at DEBUG; capped at WARNING.
_NOISY_LOGGERS: tuple[str, ...] = (
    "dynaconf",
    "dynaconf.loaders",
)


def _drop_formatter_bookkeeping(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Strip the keys ProcessorFormatter adds to every record.

    A KeyError here means the formatter wiring is broken.
    """
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _shared_processors() -> list[Any]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_processors(json_output: bool) -> list[Any]:
    if json_output:
        return [
            _drop_formatter_bookkeeping,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [_drop_formatter_bookkeeping, structlog.dev.ConsoleRenderer(colors=True)]


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelNamesMapping().get(level.upper())
    if resolved is None:
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib logging to one handler.

    Replaces any handlers on the root logger.

    Args:
        json_output: JSON lines when True, console rendering otherwise
        level: Root level name (DEBUG, INFO, WARNING, ERROR)
        stream: Output stream; defaults to sys.stdout at call time

    Raises:
        ValueError: If level is not a stdlib logging level name.
    """
    log_level = _resolve_level(level)
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests reconfigure between cases
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(ProcessorFormatter(processors=_render_processors(json_output), foreign_pre_chain=shared))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    capped = max(log_level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(capped)


def configure_logging_from_settings(settings: LoggingSettings, *, stream: TextIO | None = None) -> None:
    configure_logging(json_output=settings.json_output, level=settings.level, stream=stream)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Bound logger for ``name`` (usually ``__name__``)."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
