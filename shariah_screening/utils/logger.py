"""
Logging infrastructure for the screening engine's entry points.

Library modules log through ``logging.getLogger(__name__)``; this module
configures where those records go and adds a structured wrapper used by
the CLI and the screening service:
- Aligned, millisecond-precision console output
- Optional log file under the data directory
- ``key=value`` structured suffixes
- Warning/error tracking for end-of-run summaries
"""

import logging
import sys
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(filename)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S,%f"


class MillisecondsFormatter(logging.Formatter):
    """Formatter with millisecond timestamps and aligned log levels."""

    def formatTime(self, record, datefmt=None):  # noqa: N802 - must match parent class method name
        ct = datetime.fromtimestamp(record.created)
        if datefmt and "%f" in datefmt:
            # strftime's %f is microseconds; we want 3-digit millis
            return ct.strftime(datefmt.replace(",%f", "")) + f",{int(record.msecs):03d}"
        if datefmt:
            return ct.strftime(datefmt)
        return ct.strftime("%Y-%m-%d %H:%M:%S") + f",{int(record.msecs):03d}"


def _format_fields(message: str, fields: dict) -> str:
    if not fields:
        return message
    formatted = " ".join(f"{k}={v}" for k, v in fields.items())
    return f"{message} [{formatted}]"


def _build_format(context: Optional[str]) -> str:
    if context:
        return f"%(asctime)s | %(levelname)-8s | {context} | %(filename)s:%(lineno)d | %(message)s"
    return LOG_FORMAT


class ScreeningLogger:
    """
    Structured logger for screening runs.

    Wraps a stdlib logger, appends ``key=value`` context to messages and keeps
    warnings/errors for the run summary.
    """

    def __init__(
        self,
        name: str = "shariah_screening",
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        log_dir: Optional[Path] = None,
        context: Optional[str] = None,
    ):
        """
        Initialize the screening logger.

        Args:
            name: Logger name
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            log_file: Optional log file name
            log_dir: Directory for log files (defaults to the data dir's logs/)
            context: Optional context label shown in every line (e.g. "portfolio")
        """
        level = getattr(logging, log_level.upper())
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.context = context

        # Root logger gets the console handler; avoid double printing
        self.logger.propagate = True
        if self.logger.handlers:
            self.logger.handlers.clear()

        formatter = MillisecondsFormatter(_build_format(context), datefmt=DATE_FORMAT)
        configure_global_logging(log_level, context=context)

        if log_file:
            if log_dir is None:
                from ..config import get_log_dir

                log_dir = get_log_dir()
            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / log_file

            file_handler = logging.FileHandler(log_path)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)
            self.info(f"Logging to file: {log_path}")

        self._tracking_lock = threading.Lock()
        self.errors: list[dict] = []
        self.warnings: list[dict] = []
        self.screenings = 0
        self.not_found: list[str] = []

    def debug(self, message: str, **kwargs):
        self.logger.debug(_format_fields(message, kwargs), stacklevel=2)

    def info(self, message: str, **kwargs):
        self.logger.info(_format_fields(message, kwargs), stacklevel=2)

    def warning(self, message: str, **kwargs):
        """Log warning message and track for reporting."""
        message = _format_fields(message, kwargs)
        self.logger.warning(message, stacklevel=2)
        with self._tracking_lock:
            self.warnings.append(
                {
                    "message": message,
                    "timestamp": datetime.now().isoformat(),
                    "data": kwargs,
                }
            )

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs):
        """Log error message and track for reporting."""
        if exception:
            message = f"{message} | Exception: {exception}"
        message = _format_fields(message, kwargs)
        self.logger.error(message, exc_info=exception is not None, stacklevel=2)
        with self._tracking_lock:
            self.errors.append(
                {
                    "message": message,
                    "exception": str(exception) if exception else None,
                    "timestamp": datetime.now().isoformat(),
                    "data": kwargs,
                }
            )

    def log_dataset_load(self, source: str, loaded: int, dropped: int, duplicates: int = 0):
        """Log a dataset load; dropped rows are the MissingIdentity count."""
        self.info(
            "Loaded screening dataset",
            source=source,
            loaded=loaded,
            dropped=dropped,
            duplicate_keys=duplicates,
        )
        if dropped:
            self.warning("Rows dropped for missing ticker/upsert_key", source=source, dropped=dropped)

    def log_screening(self, ticker: str, found: bool, numeric: str, auto_ban: str, composite: str):
        """Log one ticker screening outcome."""
        with self._tracking_lock:
            self.screenings += 1
            if not found:
                self.not_found.append(ticker)
        if not found:
            self.info("No screening data", ticker=ticker)
            return
        self.debug(
            "Screened ticker",
            ticker=ticker,
            numeric=numeric,
            auto_ban=auto_ban,
            composite=composite,
        )

    def log_portfolio_complete(self, holdings: int, total_value: float, duration_seconds: float):
        self.info(
            "Portfolio screening complete",
            holdings=holdings,
            total_value=round(total_value, 2),
            duration_seconds=round(duration_seconds, 3),
        )

    @contextmanager
    def time_operation(self, operation: str, **context):
        """
        Time and log an operation.

        Usage:
            with logger.time_operation("dataset load", source="screening.csv"):
                repository.load()
        """
        start_time = datetime.now()
        self.debug(f"Starting {operation}", **context)
        try:
            yield
        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            self.error(f"Failed {operation}", exception=e, duration_seconds=round(duration, 3), **context)
            raise
        duration = (datetime.now() - start_time).total_seconds()
        self.debug(f"Completed {operation}", duration_seconds=round(duration, 3), **context)

    def get_error_summary(self) -> dict:
        with self._tracking_lock:
            return {
                "total_errors": len(self.errors),
                "total_warnings": len(self.warnings),
                "errors": list(self.errors),
                "warnings": list(self.warnings),
            }

    def generate_summary(self) -> dict:
        """Summary of the run for end-of-command reporting."""
        with self._tracking_lock:
            return {
                "screenings": self.screenings,
                "not_found": len(self.not_found),
                "not_found_tickers": list(self.not_found),
                "total_errors": len(self.errors),
                "total_warnings": len(self.warnings),
            }

    def clear_tracking(self):
        with self._tracking_lock:
            self.errors = []
            self.warnings = []
            self.screenings = 0
            self.not_found = []


# ============================================================================
# Global Logger Instance
# ============================================================================

_default_logger: Optional[ScreeningLogger] = None


def get_logger(
    name: str = "shariah_screening",
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    context: Optional[str] = None,
) -> ScreeningLogger:
    """
    Get or create the default screening logger.

    Args:
        name: Logger name
        log_level: Logging level
        log_file: Optional log file
        context: Optional context label (e.g. "ticker", "portfolio")

    Returns:
        ScreeningLogger instance
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = ScreeningLogger(
            name=name,
            log_level=log_level,
            log_file=log_file,
            context=context,
        )

    return _default_logger


def reset_logger():
    """Drop the default logger (tests and repeated CLI invocations)."""
    global _default_logger
    _default_logger = None


# ============================================================================
# Global Logging Configuration
# ============================================================================


def configure_global_logging(log_level: str = "INFO", context: Optional[str] = None):
    """
    Configure the root logger with the unified format.

    Call early in application startup so engine modules (which log via
    ``logging.getLogger(__name__)``) share the console format.

    Args:
        log_level: Logging level to apply globally (DEBUG, INFO, WARNING, ERROR)
        context: Optional context label
    """
    level = getattr(logging, log_level.upper())
    formatter = MillisecondsFormatter(_build_format(context), datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    root_handler = logging.StreamHandler(sys.stderr)
    root_handler.setLevel(level)
    root_handler.setFormatter(formatter)
    root_logger.addHandler(root_handler)
