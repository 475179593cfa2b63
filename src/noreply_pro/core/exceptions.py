"""
Custom exceptions for the NoReply Pro store.

Provides a hierarchy of business and infrastructure exceptions
for proper error handling and HTTP status code mapping.
"""

from typing import Optional


class NoReplyProError(Exception):
    """Base exception for all NoReply Pro errors."""
    
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# Business Errors (4xx)
# =============================================================================

class BusinessError(NoReplyProError):
    """Base exception for business logic errors (typically 4xx)."""
    pass


class ValidationError(BusinessError):
    """Raised when an entity or request payload is invalid."""
    
    def __init__(self, field: str, message: str):
        super().__init__(
            f"Validation error on '{field}': {message}",
            {"field": field}
        )
        self.field = field


class PurgeNotConfirmedError(BusinessError):
    """Raised when a purge is requested without explicit confirmation."""
    
    def __init__(self):
        super().__init__(
            "Purge requires explicit confirmation",
            {"required": "confirm"}
        )


# =============================================================================
# Infrastructure Errors (5xx)
# =============================================================================

class InfrastructureError(NoReplyProError):
    """Base exception for infrastructure errors (typically 5xx)."""
    pass


class ConfigurationError(InfrastructureError):
    """Raised when a required configuration is missing."""
    
    def __init__(self, config_name: str, message: Optional[str] = None):
        msg = message or f"Configuration missing: {config_name}"
        super().__init__(msg, {"config_name": config_name})
        self.config_name = config_name


class SubstrateError(InfrastructureError):
    """Raised by a key-value substrate when it cannot serve a request."""
    
    def __init__(self, key: str, operation: str, message: str):
        super().__init__(
            f"Substrate {operation} failed for '{key}': {message}",
            {"key": key, "operation": operation}
        )
        self.key = key
        self.operation = operation


class PersistenceUnavailableError(InfrastructureError):
    """
    Raised by a collection service when the substrate refused an operation.
    
    Recoverable: the write did not happen, previously stored data is intact.
    """
    
    def __init__(self, collection: str, operation: str, message: str = ""):
        super().__init__(
            f"Persistence unavailable for {collection} ({operation})"
            + (f": {message}" if message else ""),
            {"collection": collection, "operation": operation}
        )
        self.collection = collection
        self.operation = operation


class ExternalServiceError(InfrastructureError):
    """Raised when an external service call fails."""
    
    def __init__(
        self,
        service_name: str,
        message: str,
        status_code: Optional[int] = None,
        duration_ms: Optional[int] = None,
    ):
        super().__init__(
            message,
            {
                "service_name": service_name,
                "status_code": status_code,
                "duration_ms": duration_ms,
            }
        )
        self.service_name = service_name
        self.status_code = status_code
        self.duration_ms = duration_ms


class DraftGenerationError(ExternalServiceError):
    """Raised when the AI drafting service cannot produce a message."""
    
    def __init__(
        self,
        message: str = "AI engine is currently offline. Please try again later.",
        status_code: Optional[int] = None,
        duration_ms: Optional[int] = None,
    ):
        super().__init__("Gemini", message, status_code, duration_ms)
