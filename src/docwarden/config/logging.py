"""structlog configuration for docwarden.

Logs always go to stderr (or an explicit stream) so that write results on
stdout stay machine-readable. Human mode uses structlog's console renderer;
``--log-json`` emits one JSON object per line with tracebacks as data.

Dispatcher events carry ``doc_type``/``doc_id`` keys that are often ``None``
(unknown types, documents without ``_id``); those keys are dropped rather
than rendered as ``doc_id=None``.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

LOGGER_NAME = "docwarden"


def drop_none_values(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Remove keys whose value is ``None``."""
    return {key: value for key, value in event_dict.items() if value is not None}


def _level_for(*, verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    return logging.ERROR if quiet else logging.WARNING


def _renderer(log_json: bool, stream: TextIO) -> list[Processor]:
    if log_json:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=stream.isatty())]


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Safe to call repeatedly; each call replaces the previous handler.

    Args:
        verbose: DEBUG output from docwarden loggers (wins over *quiet*).
        quiet: Only ERROR output from docwarden loggers.
        log_json: JSON lines instead of the console renderer.
        stream: Destination; ``sys.stderr`` at call time by default.
    """
    stream = stream or sys.stderr

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        drop_none_values,
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderer(log_json, stream),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(LOGGER_NAME).setLevel(_level_for(verbose=verbose, quiet=quiet))
