"""
Structured JSON Logger.

Provides structured logging for the local store and its API:
- One JSON object per line on stdout
- Severity names compatible with common log collectors
- Contextual fields (request_id, collection, duration_ms, ...)
- Request correlation when running inside Flask
"""

import json
import logging
import os
import sys
import time
import uuid
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, TypeVar

from flask import Flask, g, has_request_context, request


F = TypeVar("F", bound=Callable[..., Any])


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured log collection."""

    SEVERITY_MAP = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARNING",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    SENSITIVE_PATTERNS = frozenset([
        "password", "secret", "token", "api_key", "apikey",
        "authorization", "credential", "private",
    ])

    MAX_VALUE_LENGTH = 500

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "severity": self.SEVERITY_MAP.get(record.levelno, "INFO"),
            "message": record.getMessage(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "logger": record.name,
        }

        self._add_request_context(log_entry)
        self._add_extra_fields(record, log_entry)
        self._add_exception_info(record, log_entry)
        self._add_source_location(record, log_entry)

        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def _add_request_context(self, log_entry: Dict[str, Any]) -> None:
        """Add the current request id, if any."""
        if not has_request_context():
            return
        request_id = getattr(g, "request_id", None)
        if request_id:
            log_entry["request_id"] = request_id

    def _add_extra_fields(self, record: logging.LogRecord, log_entry: Dict[str, Any]) -> None:
        """Add extra fields passed to the log."""
        extra_fields = getattr(record, "extra_fields", None)
        if not extra_fields:
            return
        for key, value in extra_fields.items():
            if not self._is_sensitive(key):
                log_entry[key] = self._sanitize_value(value)

    def _add_exception_info(self, record: logging.LogRecord, log_entry: Dict[str, Any]) -> None:
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

    def _add_source_location(self, record: logging.LogRecord, log_entry: Dict[str, Any]) -> None:
        """Add source location for warnings and above."""
        if record.levelno >= logging.WARNING:
            log_entry["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

    def _is_sensitive(self, key: str) -> bool:
        key_lower = key.lower()
        return any(pattern in key_lower for pattern in self.SENSITIVE_PATTERNS)

    def _sanitize_value(self, value: Any) -> Any:
        """Truncate long string values (drafts and notes can be long)."""
        if isinstance(value, str) and len(value) > self.MAX_VALUE_LENGTH:
            return value[:self.MAX_VALUE_LENGTH] + "... [truncated]"
        return value


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter merging bound fields with per-call extra_fields."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        extra_fields = extra.pop("extra_fields", {})

        if self.extra:
            extra_fields = {**self.extra, **extra_fields}

        kwargs["extra"] = {**extra, "extra_fields": extra_fields}
        return msg, kwargs

    def with_fields(self, **fields: Any) -> "StructuredLogger":
        """Create a new logger with additional bound fields."""
        return StructuredLogger(self.logger, {**self.extra, **fields})


def _configured_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def get_logger(name: str = "noreply-pro") -> StructuredLogger:
    """
    Create and configure a structured JSON logger.

    Args:
        name: Logger name.

    Returns:
        Configured StructuredLogger instance.
    """
    base_logger = logging.getLogger(name)

    if not base_logger.handlers:
        level = _configured_level()
        base_logger.setLevel(level)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(JsonFormatter())

        base_logger.addHandler(handler)
        base_logger.propagate = False

    return StructuredLogger(base_logger, {})


def log_request_context(app: Flask) -> None:
    """
    Flask middleware assigning a request id and logging each response.

    Args:
        app: Flask application instance.
    """
    @app.before_request
    def before_request() -> None:
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        g.start_time = time.time()

    @app.after_request
    def after_request(response):
        duration_ms = None
        if hasattr(g, "start_time"):
            duration_ms = int((time.time() - g.start_time) * 1000)

        response.headers["X-Request-ID"] = g.get("request_id", "")

        get_logger("request").info(
            f"{request.method} {request.path} -> {response.status_code}",
            extra={"extra_fields": {
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }}
        )

        return response


def log_duration(operation: str) -> Callable[[F], F]:
    """
    Decorator to measure and log operation duration.

    Successful calls are logged at DEBUG, failures at ERROR before
    the exception is re-raised.

    Args:
        operation: Operation name for logging.
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = get_logger(func.__module__)
            start = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{operation} failed: {e}",
                    extra={"extra_fields": {
                        "operation": operation,
                        "duration_ms": int((time.time() - start) * 1000),
                        "status": "error",
                        "error_type": type(e).__name__,
                    }}
                )
                raise
            logger.debug(
                f"{operation} completed",
                extra={"extra_fields": {
                    "operation": operation,
                    "duration_ms": int((time.time() - start) * 1000),
                    "status": "success",
                }}
            )
            return result
        return wrapper  # type: ignore
    return decorator


# Global application logger
logger = get_logger("noreply-pro")
