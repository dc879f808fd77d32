"""
Structured logging system for recordcompare.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring comparison runs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json

from .env import load_settings


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring source fetches and comparison results.
    """

    def __init__(
        self,
        name: str = "recordcompare",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers

        self.metrics = self._empty_metrics()

        # Console handler
        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # File handler
        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"recordcompare_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "runs": 0,
            "fetches_attempted": 0,
            "fetches_successful": 0,
            "fetches_failed": 0,
            "records_fetched": {},
            "duplicate_keys": {},
            "errors_by_type": {},
            "last_result": None,
        }

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_run(self):
        """Increment comparison run counter."""
        self.metrics["runs"] += 1

    def record_fetch_attempt(self, side: str):
        """Record a fetch attempt for one side."""
        self.metrics["fetches_attempted"] += 1
        self.metrics["records_fetched"].setdefault(side, 0)

    def record_fetch_success(self, side: str, records: int, duplicates: int = 0):
        """Record a completed fetch and the number of records it returned."""
        self.metrics["fetches_successful"] += 1
        self.metrics["records_fetched"][side] = (
            self.metrics["records_fetched"].get(side, 0) + records
        )
        if duplicates:
            self.metrics["duplicate_keys"][side] = (
                self.metrics["duplicate_keys"].get(side, 0) + duplicates
            )

    def record_fetch_failure(self, side: str, error_type: str):
        """Record a failed fetch."""
        self.metrics["fetches_failed"] += 1
        self.metrics["records_fetched"].setdefault(side, 0)

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def record_result(self, summary: dict):
        """Remember the counts of the latest comparison result."""
        self.metrics["last_result"] = dict(summary)

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        attempts = metrics_copy["fetches_attempted"]
        if attempts > 0:
            metrics_copy["fetch_success_rate"] = round(
                metrics_copy["fetches_successful"] / attempts, 3
            )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total_attempts = metrics["fetches_attempted"]
        total_successes = metrics["fetches_successful"]
        overall_rate = 0
        if total_attempts > 0:
            overall_rate = round(total_successes / total_attempts * 100, 1)

        self.info("=== Comparison Session Metrics ===")
        self.info(f"Runs: {metrics['runs']}")
        self.info(f"Fetches: {total_successes}/{total_attempts} ({overall_rate}% success)")

        if metrics["records_fetched"]:
            self.info("Records fetched:")
            for side, count in metrics["records_fetched"].items():
                duplicates = metrics["duplicate_keys"].get(side, 0)
                self.info(f"  {side}: {count} (duplicate keys: {duplicates})")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")

        if metrics["last_result"]:
            self.info(f"Last result: {json.dumps(metrics['last_result'])}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "recordcompare",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level and file logging default to RECORDCOMPARE_LOG_LEVEL and
    RECORDCOMPARE_LOG_DIR; file logging is off unless a log directory is set.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        settings = load_settings()
        if "log_dir" not in kwargs:
            kwargs["log_dir"] = settings.log_dir
        kwargs.setdefault("enable_file", kwargs["log_dir"] is not None)
        _global_logger = StructuredLogger(
            name=name, level=level or settings.log_level, **kwargs
        )

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
