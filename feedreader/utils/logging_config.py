"""
Structured Logging Configuration

structlog on top of the standard library logging module, shaped for a CLI
whose stdout belongs to the rendered screens:
- stderr always gets the log stream: readable console lines, or JSON lines
  when ENV=production
- an optional file (``--log-file`` or LOG_FILE) additionally gets JSON lines,
  rotated at 5MB

Usage:
    from feedreader.utils.logging_config import configure_logging, get_logger

    # Once, when the CLI starts
    configure_logging(verbose=args.verbose, log_file=args.log_file)

    # In any module
    logger = get_logger(__name__)
    logger.info("Feeds loaded", count=3)
"""

import logging
import logging.handlers
import os
import sys
from typing import Optional

import structlog
from structlog.types import Processor

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

_SHARED_PROCESSORS: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
    structlog.processors.format_exc_info,
]


def _is_production() -> bool:
    env = os.getenv("ENV", os.getenv("ENVIRONMENT", "development")).lower()
    return env in ("production", "prod")


def _resolve_level(verbose: bool) -> int:
    """-v wins; otherwise LOG_LEVEL, defaulting to WARNING so screens stay clean."""
    if verbose:
        return logging.DEBUG
    level_name = os.getenv("LOG_LEVEL", "WARNING").upper()
    return getattr(logging, level_name, logging.WARNING)


def _formatter(renderer: Processor) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_SHARED_PROCESSORS,
    )


def _console_handler(json_format: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    handler.setFormatter(_formatter(renderer))
    return handler


def _file_handler(path: str) -> logging.Handler:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
    )
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer(ensure_ascii=False)))
    return handler


def configure_logging(
    verbose: bool = False,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> None:
    """
    Configure structlog for one CLI run.

    Args:
        verbose: Log at DEBUG, which includes every HTTP request.
        log_file: Also write JSON lines here (defaults to LOG_FILE, if set).
        json_format: Render stderr as JSON. If None, auto-detect from ENV.
    """
    if json_format is None:
        json_format = _is_production()
    if log_file is None:
        log_file = os.getenv("LOG_FILE") or None

    level = _resolve_level(verbose)
    handlers = [_console_handler(json_format)]
    if log_file:
        handlers.append(_file_handler(log_file))

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Each CLI run may reconfigure the level, so bound loggers are not cached
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        handlers=handlers,
        level=level,
        force=True,
    )

    # The client logs its own requests; the transport loggers only add noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to *name* (typically __name__)."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """
    Bind context variables included in every subsequent log line.

    The CLI binds a short request_id per command so all HTTP calls made for
    one screen can be correlated.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
