"""
Logging module - Structured logging system built on structlog.
"""

from .setup import configure_logging, get_logger, level_for

__all__ = [
    "configure_logging",
    "get_logger",
    "level_for",
]
