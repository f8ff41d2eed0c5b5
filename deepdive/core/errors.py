"""Exception hierarchy shared by the store, the controller and the API.

Every error carries a human-readable ``message``, a machine ``code`` and the
HTTP status the API answers with. The controller shows ``message`` to the user
as is.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, TypeVar

from fastapi import status


class DeepDiveError(Exception):
    default_message = "Something went wrong."
    code = "deepdive_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        """The ``error`` object of an API error body."""
        body: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(DeepDiveError):
    """A file or request body the store will not accept."""

    default_message = "Invalid input."
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class ResourceNotFoundError(DeepDiveError):
    default_message = "Not found."
    code = "resource_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class StoreError(DeepDiveError):
    """Base class for persistent store failures."""

    default_message = "Store operation failed."
    code = "store_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreIntegrityError(StoreError):
    """Raised when a write violates a store constraint."""

    default_message = "Store constraint violated."
    code = "store_integrity_error"
    status_code = status.HTTP_409_CONFLICT


class DuplicateKeyError(StoreIntegrityError):
    """Raised when inserting a record whose identifier already exists."""

    default_message = "A record with this identifier already exists."
    code = "duplicate_key"
    status_code = status.HTTP_409_CONFLICT


class StoreUnavailableError(StoreError):
    """Raised when the store cannot be reached."""

    default_message = "Store is unreachable."
    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class StoreConnectionError(StoreUnavailableError):
    """Raised when the store API keeps failing after all retries."""

    default_message = "Database connection failed. Operating in offline mode."
    code = "store_connection_failed"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class StoreTimeoutError(StoreUnavailableError):
    """Raised when the last attempt against the store API timed out."""

    default_message = "Database connection timeout. Please check your connection."
    code = "store_timeout"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT


class StoreProtocolError(StoreUnavailableError):
    """Raised when the store API answers with a body that is not the expected JSON."""

    default_message = "Store API returned a malformed response."
    code = "store_protocol_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class StoreResponseError(StoreError):
    """Raised when the store API answers with a non-retryable error status."""

    default_message = "Store API rejected the request."
    code = "store_response_error"
    status_code = status.HTTP_400_BAD_REQUEST


class ExternalServiceError(DeepDiveError):
    """The language model service failed."""

    default_message = "The AI service is unavailable."
    code = "external_service_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class AnalysisCallError(ExternalServiceError):
    """Raised when the analysis request to the LLM fails."""

    default_message = (
        "An error occurred during analysis. "
        "Please check your API key configuration and try again."
    )
    code = "analysis_call_error"


class ChatCallError(ExternalServiceError):
    """Raised when a follow-up chat request to the LLM fails."""

    default_message = "An error occurred during chat. Please try again."
    code = "chat_call_error"


DDE = TypeVar("DDE", bound=DeepDiveError)


__all__ = [
    "AnalysisCallError",
    "ChatCallError",
    "DDE",
    "DeepDiveError",
    "DuplicateKeyError",
    "ExternalServiceError",
    "ResourceNotFoundError",
    "StoreConnectionError",
    "StoreError",
    "StoreIntegrityError",
    "StoreProtocolError",
    "StoreResponseError",
    "StoreTimeoutError",
    "StoreUnavailableError",
    "ValidationError",
]
