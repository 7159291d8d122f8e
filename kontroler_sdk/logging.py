"""Structured logging configuration for Kontroler SDK applications.

The SDK modules log through structlog loggers wrapping standard library
loggers (``kontroler_sdk.session``, ``kontroler_sdk.streaming``, ...) and
never configure logging themselves. An application that does nothing gets
the standard library default: warnings and errors on stderr, nothing else.
Applications (such as the ``kontroler`` CLI) call :func:`configure` once to
set up:

- JSON output (KONTROLER_LOG_FORMAT=json, default)
- Colored console output (KONTROLER_LOG_FORMAT=console)
- Log level via KONTROLER_LOG_LEVEL (default WARNING)
- Context variable merging (run_id, pod, ...)
- Standard library integration so httpx and websockets emit structured output

All output goes to stderr so it never interleaves with streamed log text
on stdout.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog


def configure(level: str | None = None, log_format: str | None = None) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Logging level name; overrides KONTROLER_LOG_LEVEL.
        log_format: "json" or "console"; overrides KONTROLER_LOG_FORMAT.
    """
    log_level_name = (level or os.environ.get("KONTROLER_LOG_LEVEL", "WARNING")).upper()
    log_level = getattr(logging, log_level_name, logging.WARNING)
    log_format = (log_format or os.environ.get("KONTROLER_LOG_FORMAT", "json")).lower()

    # Shared processors used by both structlog and stdlib integration
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    # structlog events are handed to stdlib logging and rendered by the
    # root handler below, next to records from httpx and websockets.
    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)
