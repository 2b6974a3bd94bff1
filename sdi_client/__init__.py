"""
SDI client - Python client for the SDI document-exchange API.

Layers:
- core: Request executor, errors and response types
- sdk: SdiClient with one method per remote resource
"""

import logging

from sdi_client.core import (
    APIClient,
    ConfigurationError,
    DocumentInfo,
    DocumentReceived,
    DocumentReceivedNotification,
    DocumentSent,
    DocumentSentNotification,
    ErrorMessage,
    File,
    JSONSerializable,
    RequestFailure,
    SdiClientError,
    ValidationError,
)
from sdi_client.sdk import SdiClient

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "APIClient",
    "ConfigurationError",
    "DocumentInfo",
    "DocumentReceived",
    "DocumentReceivedNotification",
    "DocumentSent",
    "DocumentSentNotification",
    "ErrorMessage",
    "File",
    "JSONSerializable",
    "RequestFailure",
    "SdiClient",
    "SdiClientError",
    "ValidationError",
]
