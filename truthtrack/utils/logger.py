"""
Structured logging configuration.

All log output goes to stderr so CLI commands can write reports to stdout.
"""

import logging
import sys
from typing import TYPE_CHECKING, Optional

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from truthtrack.config.settings import Settings

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "anthropic")


class StderrLoggerFactory:
    """
    Build a PrintLogger on whatever ``sys.stderr`` is when a line is logged.

    Redirections (pytest capture, CliRunner, ``redirect_stderr``) swap and
    close stderr streams, so the stream is never stored at configure time.
    """

    def __call__(self, *args) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure application-wide structured logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Whether to output logs in JSON format.
        log_file: Optional file path for logging output.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=StderrLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # No stream handler on the root logger: stdlib records fall through to
    # logging.lastResort, which also writes to the current sys.stderr.
    logging.getLogger().setLevel(numeric_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        logging.getLogger().addHandler(file_handler)


def configure_from_settings(settings: "Settings", verbose: bool = False) -> None:
    """Configure logging from application settings; ``verbose`` forces DEBUG."""
    setup_logging(
        level="DEBUG" if verbose or settings.debug else settings.log_level,
        json_format=settings.log_json,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger for the given module name.

    Args:
        name: Logger name, typically __name__.
    """
    return structlog.get_logger(name)


class LogContext:
    """
    Context manager binding key/value pairs to every log line in the block.

    Nested contexts restore the outer values on exit.

    Example:
        >>> with LogContext(product_id=str(product.id)):
        ...     logger.info("Scoring")
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._tokens = None

    def __enter__(self):
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._tokens:
            structlog.contextvars.reset_contextvars(**self._tokens)
            self._tokens = None
