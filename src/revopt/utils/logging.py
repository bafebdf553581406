"""
Structured logging for revopt.

Loader events are emitted through structlog with key/value context (url,
rows, source, error). Output goes to stderr by default so that commands
writing JSON to stdout, such as `revopt manifest`, stay pipeable.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.typing import FilteringBoundLogger, Processor


def resolve_level(level: str) -> int:
    """
    Map a level name to its numeric value.

    Raises:
        ValueError: If the name is not a standard logging level.
    """
    levels = logging.getLevelNamesMapping()
    try:
        return levels[level.upper()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level}") from None


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structured logging for the loader.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Render one JSON object per line instead of the
            human-readable console format.
        stream: Destination, stderr when omitted.
    """
    out = stream if stream is not None else sys.stderr

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=out.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(resolve_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a logger, typically for the calling module's __name__."""
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind key/value pairs to every event logged inside the block.

    Example:
        with log_context(manifest_url="https://example.org/data/manifest.json"):
            log.info("Fetching manifest")
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
