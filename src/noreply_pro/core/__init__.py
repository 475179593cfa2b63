"""Core package - Pure business logic with no external dependencies."""

from noreply_pro.core.clock import now_utc
from noreply_pro.core.exceptions import (
    BusinessError,
    ConfigurationError,
    DraftGenerationError,
    ExternalServiceError,
    InfrastructureError,
    NoReplyProError,
    PersistenceUnavailableError,
    PurgeNotConfirmedError,
    SubstrateError,
    ValidationError,
)
from noreply_pro.core.identifiers import (
    IdGenerator,
    random_id,
    sequential_ids,
)

__all__ = [
    # Exceptions
    "BusinessError",
    "ConfigurationError",
    "DraftGenerationError",
    "ExternalServiceError",
    "InfrastructureError",
    "NoReplyProError",
    "PersistenceUnavailableError",
    "PurgeNotConfirmedError",
    "SubstrateError",
    "ValidationError",
    # Identifiers
    "IdGenerator",
    "random_id",
    "sequential_ids",
    # Time
    "now_utc",
]
