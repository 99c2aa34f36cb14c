"""
Structured Logging Module.

Provides logging with structured output for monitoring model training,
artifact loading and scoring in the risk engine.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Loggers handed out by get_logger, by name
_LOGGERS: dict[str, "RiskLogger"] = {}


class RiskLogger:
    """
    Structured logger for the risk-scoring engine.

    Provides:
    - JSON formatted logs for production
    - Human-readable format for development
    - Timing of named operations
    """

    def __init__(
        self,
        name: str = "fraud_risk",
        level: str = "INFO",
        format: str = "text",
        log_file: Optional[str] = None
    ):
        """
        Initialize the logger.

        Args:
            name: Logger name.
            level: Logging level (DEBUG, INFO, WARNING, ERROR).
            format: Output format ('json' or 'text').
            log_file: Path to log file (optional).
        """
        self.name = name
        self.level = level
        self.format = format
        self.log_file = log_file

        self._logger = self._setup_logger()
        self._metrics: dict[str, list] = {}
        self._start_times: dict[str, float] = {}

    def configure(
        self,
        level: str = "INFO",
        format: str = "text",
        log_file: Optional[str] = None
    ) -> None:
        """Replace level, format and handlers in place; metrics are kept."""
        self.level = level
        self.format = format
        self.log_file = log_file
        self._logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        """Set up the underlying logger."""
        logger = logging.getLogger(self.name)
        logger.setLevel(getattr(logging, self.level.upper()))
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []
        logger.propagate = False

        if self.format == "json":
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if self.log_file:
            path = Path(self.log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        return logger

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message."""
        self._log("debug", message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message."""
        self._log("info", message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message."""
        self._log("warning", message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log error message."""
        self._log("error", message, **kwargs)

    def _log(self, level: str, message: str, **kwargs) -> None:
        log_func = getattr(self._logger, level)

        if self.format == "json":
            extra = {"extra_fields": kwargs} if kwargs else {}
            log_func(message, extra=extra)
        else:
            if kwargs:
                extra_str = " ".join(f"{k}={v}" for k, v in kwargs.items())
                message = f"{message} | {extra_str}"
            log_func(message)

    def start_timer(self, operation: str) -> None:
        """Start timing an operation."""
        self._start_times[operation] = time.perf_counter()

    def stop_timer(self, operation: str) -> float:
        """Stop timing and return duration in seconds."""
        if operation not in self._start_times:
            return 0.0

        duration = time.perf_counter() - self._start_times.pop(operation)
        self._metrics.setdefault(operation, []).append(duration)
        return duration

    @contextmanager
    def timer(self, operation: str, log_result: bool = True):
        """Context manager for timing operations."""
        self.start_timer(operation)
        try:
            yield
        finally:
            duration = self.stop_timer(operation)
            if log_result:
                self.info(f"{operation} completed", duration_seconds=round(duration, 3))

    def get_metrics_summary(self) -> dict:
        """Get summary statistics for all recorded timings."""
        summary = {}

        for name, values in self._metrics.items():
            if values:
                summary[name] = {
                    "count": len(values),
                    "mean": sum(values) / len(values),
                    "min": min(values),
                    "max": max(values),
                    "last": values[-1]
                }

        return summary

    def log_training_result(
        self,
        feature_count: int,
        pattern_count: int,
        corpus_size: int,
        labeled_cases: int,
        **extra
    ) -> None:
        """Log a training run summary."""
        self.info(
            "Training completed",
            feature_count=feature_count,
            pattern_count=pattern_count,
            corpus_size=corpus_size,
            labeled_cases=labeled_cases,
            **extra
        )


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def get_logger(
    name: str = "fraud_risk",
    level: str = "INFO",
    format: str = "text",
    log_file: Optional[str] = None
) -> RiskLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name.
        level: Logging level.
        format: Output format ('json' or 'text').
        log_file: Path to log file.

    Returns:
        Configured RiskLogger instance.
    """
    logger = RiskLogger(name=name, level=level, format=format, log_file=log_file)
    _LOGGERS[name] = logger
    return logger


def configure_logging(
    level: str = "INFO",
    format: str = "text",
    log_file: Optional[str] = None,
    prefix: str = "fraud_risk"
) -> None:
    """
    Reconfigure every logger handed out by get_logger under ``prefix``.

    Module loggers are created at import time with defaults; this applies
    the logging section of a RiskEngineConfig to them afterwards.

    Args:
        level: Logging level.
        format: Output format ('json' or 'text').
        log_file: Path to log file.
        prefix: Logger name prefix to reconfigure.
    """
    for name, logger in _LOGGERS.items():
        if name == prefix or name.startswith(prefix + "."):
            logger.configure(level=level, format=format, log_file=log_file)
