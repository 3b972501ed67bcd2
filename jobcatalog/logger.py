"""
Structured logging system for jobcatalog.

Provides centralized logging with console and file outputs, plus
counters for monitoring catalog health (syncs, storage, admin access).
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json

from .config import Settings


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for sync, storage and authentication activity.
    """

    def __init__(
        self,
        name: str = "jobcatalog",
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

        self.metrics = {
            "syncs_attempted": 0,
            "syncs_successful": 0,
            "syncs_failed": 0,
            "storage_failures": 0,
            "auth_attempts": 0,
            "auth_failures": 0,
            "errors_by_type": {},
        }
        self.configure(level, log_dir, enable_file, enable_console)

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """Replace the handlers, e.g. once .env settings are known. Metrics are kept."""
        self.logger.setLevel(getattr(logging, level.upper()))
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"jobcatalog_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

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

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_sync_attempt(self):
        self.metrics["syncs_attempted"] += 1

    def record_sync_success(self):
        self.metrics["syncs_successful"] += 1

    def record_sync_failure(self, error_type: str):
        self.metrics["syncs_failed"] += 1
        self._count_error(error_type)

    def record_storage_failure(self, error_type: str):
        """Record a failed read or write against the persistent store."""
        self.metrics["storage_failures"] += 1
        self._count_error(error_type)

    def record_auth_attempt(self, success: bool):
        """Record an admin authentication attempt and its outcome."""
        self.metrics["auth_attempts"] += 1
        if not success:
            self.metrics["auth_failures"] += 1

    def _count_error(self, error_type: str):
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = dict(self.metrics)
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        attempts = metrics_copy["syncs_attempted"]
        if attempts > 0:
            metrics_copy["sync_success_rate"] = round(
                metrics_copy["syncs_successful"] / attempts, 3
            )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Catalog Session Metrics ===")
        self.info(
            f"Syncs: {metrics['syncs_successful']}/{metrics['syncs_attempted']} "
            f"({metrics['syncs_failed']} failed)"
        )
        self.info(f"Storage failures: {metrics['storage_failures']}")
        self.info(f"Admin logins: {metrics['auth_attempts']} ({metrics['auth_failures']} rejected)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "jobcatalog",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level, log directory and file output default to the JOBCATALOG_LOG_LEVEL,
    JOBCATALOG_LOG_DIR and JOBCATALOG_LOG_TO_FILE environment variables.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        settings = Settings.from_env()
        kwargs.setdefault("log_dir", Path(settings.log_dir))
        kwargs.setdefault("enable_file", settings.log_to_file)
        _global_logger = StructuredLogger(name=name, level=level or settings.log_level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
