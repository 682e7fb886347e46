"""
Trade Journal Logging Configuration

Provides structured logging with JSON format support, slow-scan tracking,
and entity lifecycle events for the journal stores.
"""

import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar


# =============================================================================
# Log Level Strategy
# =============================================================================
#
# DEBUG   - Locator lookups, cache reloads, filter recomputation
# INFO    - Entities saved, deleted, versioned; data directory initialised
# WARNING - Files skipped during a directory scan, slow scans, conflicts
# ERROR   - Unexpected I/O failures returned through the response envelope
# =============================================================================


class StructuredFormatter(logging.Formatter):
    """
    JSON structured log formatter.

    One JSON object per line, suitable for shipping to a log aggregator.
    """

    def __init__(self, service_name: str = "tradejournal", environment: str = "development"):
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.hostname = os.uname().nodename if hasattr(os, "uname") else os.environ.get("COMPUTERNAME")

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "environment": self.environment,
            "hostname": self.hostname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Context fields prefixed with ctx_ are included
        for key, value in record.__dict__.items():
            if key.startswith("ctx_"):
                log_data[key[4:]] = value

        log_data = {k: v for k, v in log_data.items() if v is not None}

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter for development.
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        formatted = (
            f"{timestamp} {color}{record.levelname:8}{self.RESET} "
            f"{record.name} - {record.getMessage()}"
        )

        extras = [
            f"{key[4:]}={value}"
            for key, value in record.__dict__.items()
            if key.startswith("ctx_")
        ]
        if extras:
            formatted += f" | {', '.join(extras)}"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    service_name: str = "tradejournal",
    environment: str = "development",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging for the journal application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging
        service_name: Service name for structured logs
        environment: Environment name (development, production)
        log_file: Optional file path for log output, always JSON
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    if json_format:
        formatter = StructuredFormatter(service_name, environment)
    else:
        formatter = ConsoleFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter(service_name, environment))
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# =============================================================================
# Performance Logging Decorator
# =============================================================================

T = TypeVar("T")


def log_performance(threshold_ms: float = 500.0, log_result: bool = False) -> Callable:
    """
    Decorator to log how long a store operation took.

    Args:
        threshold_ms: Log a warning if execution exceeds this threshold
        log_result: Include the result size in the log

    Example:
        @log_performance(threshold_ms=250)
        def list(self):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            start_time = time.perf_counter()
            extra: Dict[str, Any] = {"ctx_function": func.__qualname__}

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                extra["ctx_duration_ms"] = round(duration_ms, 2)
                extra["ctx_error_type"] = type(e).__name__
                logger.debug(
                    f"Operation raised: {func.__qualname__} - {e}",
                    extra=extra,
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            extra["ctx_duration_ms"] = round(duration_ms, 2)
            if log_result and hasattr(result, "__len__"):
                extra["ctx_result_count"] = len(result)

            if duration_ms > threshold_ms:
                logger.warning(
                    f"Slow operation: {func.__qualname__} took {duration_ms:.2f}ms",
                    extra=extra,
                )
            else:
                logger.debug(
                    f"Operation completed: {func.__qualname__} in {duration_ms:.2f}ms",
                    extra=extra,
                )
            return result

        return wrapper

    return decorator


# =============================================================================
# Structured Log Helpers
# =============================================================================


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Additional context fields
    """
    extra = {f"ctx_{k}": v for k, v in context.items()}
    logger.log(level, message, extra=extra)


# =============================================================================
# Journal Event Logging
# =============================================================================


class JournalEventLogger:
    """
    Logger for entity lifecycle events with structured context.

    Provides consistent logging for saves, deletions and skipped files.
    """

    def __init__(self, logger_name: str = "tradejournal.events"):
        self.logger = logging.getLogger(logger_name)

    def log_saved(self, entity: str, entity_id: str, path: Any, created: bool) -> None:
        """Log a successful write."""
        action = "created" if created else "updated"
        self.logger.info(
            f"{entity} {action}: {entity_id}",
            extra={
                "ctx_event": f"{entity}_{action}",
                "ctx_entity_id": entity_id,
                "ctx_path": str(path),
            },
        )

    def log_deleted(self, entity: str, entity_id: str, path: Any) -> None:
        self.logger.info(
            f"{entity} deleted: {entity_id}",
            extra={
                "ctx_event": f"{entity}_deleted",
                "ctx_entity_id": entity_id,
                "ctx_path": str(path),
            },
        )

    def log_versioned(self, thesis_id: str, version_number: int, changes: str) -> None:
        self.logger.info(
            f"thesis {thesis_id} now at version {version_number}",
            extra={
                "ctx_event": "thesis_versioned",
                "ctx_entity_id": thesis_id,
                "ctx_version": version_number,
                "ctx_changes": changes,
            },
        )

    def log_skipped(self, path: Any, error: Exception) -> None:
        """Log a file left out of a directory scan."""
        self.logger.warning(
            f"Skipping {path}: {error}",
            extra={
                "ctx_event": "file_skipped",
                "ctx_path": str(path),
                "ctx_error_type": type(error).__name__,
            },
        )

    def log_conflict(self, entity_id: str, detail: str) -> None:
        self.logger.warning(
            f"Rejected {entity_id}: {detail}",
            extra={"ctx_event": "conflict", "ctx_entity_id": entity_id},
        )


journal_events = JournalEventLogger()
