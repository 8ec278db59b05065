"""Shared utilities: logging setup, ratio scale helpers and the holdings worker pool."""

from .logger import (
    MillisecondsFormatter,
    ScreeningLogger,
    configure_global_logging,
    get_logger,
    reset_logger,
)
from .ratios import format_percent, normalize_ratio, to_percent
from .worker_pool import WorkerPool

__all__ = [
    "MillisecondsFormatter",
    "ScreeningLogger",
    "configure_global_logging",
    "get_logger",
    "reset_logger",
    "format_percent",
    "normalize_ratio",
    "to_percent",
    "WorkerPool",
]
