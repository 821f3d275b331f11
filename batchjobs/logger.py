"""
Structured logging for batchjobs.

Provides centralized logging with console and file outputs, plus request
metrics for monitoring how the Batch service is being called.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json
import copy


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks request metrics against the Batch service.
    """

    def __init__(
        self,
        name: str = "batchjobs",
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

        self.metrics = {
            "api_calls": 0,
            "pages_fetched": 0,
            "requests_failed": 0,
            "errors_by_type": {},
            "operation_success_rate": {},
        }

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

            log_file = log_dir / f"batchjobs_{datetime.now().strftime('%Y%m%d')}.log"
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

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_api_call(self, operation: str):
        """Record a request sent for an operation."""
        self.metrics["api_calls"] += 1
        if operation not in self.metrics["operation_success_rate"]:
            self.metrics["operation_success_rate"][operation] = {
                "attempts": 0,
                "successes": 0
            }
        self.metrics["operation_success_rate"][operation]["attempts"] += 1

    def record_api_success(self, operation: str):
        """Record a request the service accepted."""
        if operation in self.metrics["operation_success_rate"]:
            self.metrics["operation_success_rate"][operation]["successes"] += 1

    def record_api_failure(self, operation: str, error_type: str):
        """Record a failed request."""
        self.metrics["requests_failed"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def record_page_fetched(self):
        """Increment listing page counter."""
        self.metrics["pages_fetched"] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = copy.deepcopy(self.metrics)
        for operation, stats in metrics_copy["operation_success_rate"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.debug("=== Batch Session Metrics ===")
        self.debug(f"API Calls: {metrics['api_calls']} ({metrics['requests_failed']} failed)")
        self.debug(f"Pages Fetched: {metrics['pages_fetched']}")

        if metrics["operation_success_rate"]:
            self.debug("Operation Success Rates:")
            for operation, stats in metrics["operation_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.debug(f"  {operation}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.debug("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.debug(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "batchjobs",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
