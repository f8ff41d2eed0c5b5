"""Core building blocks shared across the package."""

from .errors import (
    AnalysisCallError,
    ChatCallError,
    DeepDiveError,
    DuplicateKeyError,
    ExternalServiceError,
    ResourceNotFoundError,
    StoreConnectionError,
    StoreError,
    StoreIntegrityError,
    StoreProtocolError,
    StoreResponseError,
    StoreTimeoutError,
    StoreUnavailableError,
    ValidationError,
)
from .logging import configure_logging
from .resilience import RetryPolicy, execute_with_retry

__all__ = [
    "AnalysisCallError",
    "ChatCallError",
    "DeepDiveError",
    "DuplicateKeyError",
    "ExternalServiceError",
    "ResourceNotFoundError",
    "RetryPolicy",
    "StoreConnectionError",
    "StoreError",
    "StoreIntegrityError",
    "StoreProtocolError",
    "StoreResponseError",
    "StoreTimeoutError",
    "StoreUnavailableError",
    "ValidationError",
    "configure_logging",
    "execute_with_retry",
]
