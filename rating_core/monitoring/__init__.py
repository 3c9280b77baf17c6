"""
Logging and observability helpers for the rating service.
"""

from .structured_logger import (
    StructuredLogger,
    LoggingContext,
    OperationLogger,
    CorrelationIdManager,
    get_logger,
    configure_logging,
)

__all__ = [
    "StructuredLogger",
    "LoggingContext",
    "OperationLogger",
    "CorrelationIdManager",
    "get_logger",
    "configure_logging",
]
