"""
Structured logging system with correlation IDs for the rating service.

This module provides structured logging capabilities with correlation ID tracking
so that every log line emitted while a rating is processed can be tied back to
the request that caused it.
"""

import logging
import uuid
import time
import threading
import contextvars
from typing import Dict, Any, Optional
from enum import Enum
import structlog
import json


# Context variable for correlation ID
correlation_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Context variable for request ID
request_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)

# Context variable for user ID
user_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "user_id", default=None
)


class LogLevel(Enum):
    """Log levels for structured logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class CorrelationIdProcessor:
    """Processor to add correlation ID to log records."""

    def __call__(self, logger, method_name, event_dict):
        """Add correlation and request IDs to log event."""
        correlation_id = correlation_id_context.get()
        if correlation_id:
            event_dict["correlation_id"] = correlation_id

        request_id = request_id_context.get()
        if request_id:
            event_dict["request_id"] = request_id

        user_id = user_id_context.get()
        if user_id:
            event_dict["user_id"] = user_id

        return event_dict


class ComponentProcessor:
    """Processor to add component information."""

    def __init__(self, component: str):
        self.component = component

    def __call__(self, logger, method_name, event_dict):
        """Add component name to log event."""
        event_dict.setdefault("component", self.component)
        return event_dict


class RatingServiceFormatter:
    """Adds timestamp and thread fields to every event."""

    def __call__(self, logger, method_name, event_dict):
        event_dict.setdefault("timestamp", time.time())
        event_dict.setdefault("level", method_name)
        event_dict["thread_name"] = threading.current_thread().name
        return event_dict


class StructuredLogger:
    """
    Structured logger with correlation ID support.

    Events go through structlog's stdlib integration, so handlers and levels
    configured with ``configure_logging`` apply to them.
    """

    def __init__(
        self, name: str, component: Optional[str] = None, log_level: LogLevel = LogLevel.INFO
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            component: Component name for logging context
            log_level: Minimum log level to emit
        """
        self.name = name
        self.component = component or name
        self.log_level = log_level

        self.logger = structlog.wrap_logger(
            logging.getLogger(name),
            processors=[
                structlog.stdlib.filter_by_level,
                CorrelationIdProcessor(),
                ComponentProcessor(self.component),
                RatingServiceFormatter(),
                structlog.processors.KeyValueRenderer(key_order=["event"], sort_keys=True),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
        )

    def _log(self, level: LogLevel, message: str, **kwargs):
        """Internal logging method."""
        getattr(self.logger, level.value)(message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, error: Optional[Exception] = None, **kwargs):
        """Log error message with optional exception."""
        if error:
            kwargs.update(
                {
                    "error_type": type(error).__name__,
                    "error_message": str(error),
                }
            )
            context = getattr(error, "context", None)
            if context:
                kwargs["error_context"] = context
        self._log(LogLevel.ERROR, message, **kwargs)

    def with_context(self, **context) -> "StructuredLogger":
        """Create a new logger with additional context."""
        new_logger = StructuredLogger(self.name, self.component, self.log_level)
        new_logger.logger = self.logger.bind(**context)
        return new_logger


class CorrelationIdManager:
    """Manager for correlation ID lifecycle."""

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a new correlation ID."""
        return str(uuid.uuid4())

    @staticmethod
    def get_correlation_id() -> Optional[str]:
        return correlation_id_context.get()

    @staticmethod
    def get_request_id() -> Optional[str]:
        return request_id_context.get()

    @staticmethod
    def get_user_id() -> Optional[str]:
        return user_id_context.get()

    @staticmethod
    def clear_context():
        """Clear all context variables."""
        correlation_id_context.set(None)
        request_id_context.set(None)
        user_id_context.set(None)


class LoggingContext:
    """Context manager for logging with correlation IDs."""

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ):
        """
        Initialize logging context.

        Args:
            correlation_id: Correlation ID (inherited or generated if not provided)
            request_id: Request ID (generated if not provided)
            user_id: User ID for request
        """
        self.correlation_id = (
            correlation_id
            or CorrelationIdManager.get_correlation_id()
            or CorrelationIdManager.generate_correlation_id()
        )
        self.request_id = request_id or str(uuid.uuid4())
        self.user_id = user_id
        self._tokens = []

    def __enter__(self):
        """Enter logging context."""
        self._tokens = [
            correlation_id_context.set(self.correlation_id),
            request_id_context.set(self.request_id),
        ]
        if self.user_id:
            self._tokens.append(user_id_context.set(self.user_id))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore the previous context values."""
        for token in reversed(self._tokens):
            token.var.reset(token)
        self._tokens = []


class OperationLogger:
    """Logger for tracking operations with timing."""

    def __init__(self, logger: StructuredLogger, operation: str):
        """
        Initialize operation logger.

        Args:
            logger: Structured logger instance
            operation: Operation name
        """
        self.logger = logger
        self.operation = operation
        self.start_time = None
        self.context = {}

    def start(self, **context):
        """Start operation logging."""
        self.start_time = time.time()
        self.context = context
        self.logger.debug(
            f"Starting operation: {self.operation}",
            operation=self.operation,
            operation_status="started",
            **context,
        )

    def success(self, **additional_context):
        """Log successful operation completion."""
        duration_ms = (time.time() - self.start_time) * 1000 if self.start_time else None
        self.logger.info(
            f"Operation completed successfully: {self.operation}",
            operation=self.operation,
            operation_status="success",
            duration_ms=duration_ms,
            **self.context,
            **additional_context,
        )

    def error(self, error: Exception, **additional_context):
        """Log operation error."""
        duration_ms = (time.time() - self.start_time) * 1000 if self.start_time else None
        self.logger.error(
            f"Operation failed: {self.operation}",
            error=error,
            operation=self.operation,
            operation_status="error",
            duration_ms=duration_ms,
            **self.context,
            **additional_context,
        )

    def __enter__(self):
        if self.start_time is None:
            self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.error(exc_val)
        # success is logged explicitly by the caller with its result fields


class JSONFormatter(logging.Formatter):
    """JSON formatter for standard library logging integration."""

    def format(self, record):
        """Format log record as JSON."""
        log_entry = {
            "timestamp": record.created,
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = CorrelationIdManager.get_correlation_id()
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        user_id = CorrelationIdManager.get_user_id()
        if user_id:
            log_entry["user_id"] = user_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def get_logger(name: str, component: Optional[str] = None) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name
        component: Component name for context

    Returns:
        Configured structured logger
    """
    return StructuredLogger(name, component)


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
):
    """
    Configure global logging settings.

    Args:
        log_level: Minimum log level
        json_format: Whether to use JSON formatting
        log_format: Format string used when json_format is False
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(log_format))
    root_logger.addHandler(console_handler)
