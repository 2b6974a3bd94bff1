"""
Core layer - Request executor and types.

This layer provides:
- Low-level HTTP client with auth, timeouts and error handling
- Read-only records for API responses
"""

from sdi_client.core.client import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_TIMEOUT,
    APIClient,
    ConfigurationError,
    RequestFailure,
    SdiClientError,
    ValidationError,
)
from sdi_client.core.types import (
    DocumentInfo,
    DocumentReceived,
    DocumentReceivedNotification,
    DocumentSent,
    DocumentSentNotification,
    ErrorMessage,
    File,
    JSONSerializable,
    Record,
)

__all__ = [
    "APIClient",
    "ConfigurationError",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_TIMEOUT",
    "DocumentInfo",
    "DocumentReceived",
    "DocumentReceivedNotification",
    "DocumentSent",
    "DocumentSentNotification",
    "ErrorMessage",
    "File",
    "JSONSerializable",
    "Record",
    "RequestFailure",
    "SdiClientError",
    "ValidationError",
]
