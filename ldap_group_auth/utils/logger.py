"""Logger access for package modules and the CLI."""

from __future__ import annotations

import logging

from .logging_config import StructuredLoggerAdapter, configure_logging, get_structured_logger

__all__ = ["configure", "get_logger"]


def configure(*, level: int = logging.INFO) -> None:
    """Send JSON log lines to stderr at ``level``."""
    configure_logging(level=level)


def get_logger(name: str) -> StructuredLoggerAdapter:
    return get_structured_logger(name)
