"""Utility modules for the feed reader client."""

from feedreader.utils.logging_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
