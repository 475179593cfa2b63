"""
Infrastructure Layer.

This layer contains all external dependencies and adapters:
- Logging configuration
- Local storage (substrates and document store)
- HTTP client for the AI drafting service
"""

from noreply_pro.infrastructure.logging import (
    get_logger,
    log_duration,
    log_request_context,
    logger,
    StructuredLogger,
)


__all__ = [
    "get_logger",
    "log_duration",
    "log_request_context",
    "logger",
    "StructuredLogger",
]
