"""
SDI SDK - One method per remote resource.

This layer maps each endpoint of the interchange service to a typed method.
Built on top of the core APIClient.
"""

import json
import logging
import operator
from typing import Any

from sdi_client.core.client import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_TIMEOUT,
    APIClient,
    ValidationError,
    settings_from_env,
)
from sdi_client.core.types import (
    DocumentReceived,
    DocumentReceivedNotification,
    DocumentSent,
    DocumentSentNotification,
    File,
    JSONSerializable,
)

logger = logging.getLogger(__name__)


def _resource_id(value: int | str) -> int:
    """Coerce a document or notification id to the integer put in the path."""
    if isinstance(value, bool) or (isinstance(value, str) and not (value.isascii() and value.isdigit())):
        raise ValidationError(f"Invalid id: {value!r}", details={"id": repr(value)})
    try:
        number = int(value) if isinstance(value, str) else operator.index(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid id: {value!r}", details={"id": repr(value)}) from None
    if number < 0:
        raise ValidationError(f"Invalid id: {value!r}", details={"id": repr(value)})
    return number


def _decode_list(body: bytes) -> Any:
    return json.loads(body)


class SdiClient:
    """
    SDI document-exchange API client with typed methods.

    Example:
        client = SdiClient("https://sdi.example.com/api", "acme", "s3cr3t")

        # Submit a document and follow its notifications
        sent = client.send_document(DocumentInfo({"filename": "invoice.xml", "content": encoded}))
        for notification in client.get_document_sent_notification_list(sent.id):
            ...

        # Grouped form of the same operations
        received = client.documents_received.get(42)
        client.documents_received.file(42).save("invoice.xml")

    """

    def __init__(
        self,
        endpoint: str,
        username: str,
        api_token: str,
        timeout: float = DEFAULT_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        verify_tls: bool = True,
    ):
        """
        Initialize the SDI client.

        Args:
            endpoint: API base URL, used verbatim as the prefix of every path
            username: Account user name
            api_token: API token paired with the user name
            timeout: Maximum seconds for a whole request
            connect_timeout: Maximum seconds to establish the connection
            verify_tls: Verify the server certificate and host name

        """
        self._client = APIClient(
            endpoint=endpoint,
            username=username,
            api_token=api_token,
            timeout=timeout,
            connect_timeout=connect_timeout,
            verify_tls=verify_tls,
        )

        # Sub-clients for different resources
        self.documents_sent = DocumentSentOperations(self._client)
        self.sent_notifications = SentNotificationOperations(self._client)
        self.documents_received = DocumentReceivedOperations(self._client)
        self.received_notifications = ReceivedNotificationOperations(self._client)

    @classmethod
    def from_env(cls, **overrides: Any) -> "SdiClient":
        """
        Create a client from environment variables.

        Reads SDI_ENDPOINT, SDI_USERNAME, SDI_API_TOKEN, SDI_TIMEOUT,
        SDI_CONNECT_TIMEOUT and SDI_VERIFY_TLS. Keyword arguments win over
        the environment.
        """
        return cls(**settings_from_env(**overrides))

    @property
    def endpoint(self) -> str:
        return self._client.endpoint

    @property
    def timeout(self) -> float:
        """Maximum seconds for a whole request."""
        return self._client.timeout

    @timeout.setter
    def timeout(self, value: float) -> None:
        self._client.set_timeout(value)

    @property
    def connect_timeout(self) -> float:
        """Maximum seconds to establish the connection."""
        return self._client.connect_timeout

    @connect_timeout.setter
    def connect_timeout(self, value: float) -> None:
        self._client.set_connect_timeout(value)

    def set_timeout(self, timeout: float) -> None:
        self._client.set_timeout(timeout)

    def set_connect_timeout(self, connect_timeout: float) -> None:
        self._client.set_connect_timeout(connect_timeout)

    # =========================================================================
    # Sent documents
    # =========================================================================

    def get_document_sent_list(self) -> Any:
        """List the sent documents."""
        return self.documents_sent.list()

    def get_document_sent(self, document_id: int) -> DocumentSent:
        return self.documents_sent.get(document_id)

    def send_document(self, document: JSONSerializable) -> DocumentSent:
        return self.documents_sent.send(document)

    def get_document_sent_notification_list(self, document_id: int) -> Any:
        """List the notifications of a sent document."""
        return self.sent_notifications.list(document_id)

    def get_document_sent_notification(self, notification_id: int) -> DocumentSentNotification:
        return self.sent_notifications.get(notification_id)

    def get_document_sent_notification_file(self, notification_id: int) -> File:
        return self.sent_notifications.file(notification_id)

    # =========================================================================
    # Received documents
    # =========================================================================

    def get_document_received_list(self) -> Any:
        """List the received documents."""
        return self.documents_received.list()

    def get_document_received(self, document_id: int) -> DocumentReceived:
        return self.documents_received.get(document_id)

    def get_document_received_file(self, document_id: int) -> File:
        return self.documents_received.file(document_id)

    def get_document_received_metafile(self, document_id: int) -> File:
        return self.documents_received.metafile(document_id)

    def get_document_received_notification_list(self, document_id: int) -> Any:
        """List the notifications of a received document."""
        return self.received_notifications.list(document_id)

    def get_document_received_notification(self, notification_id: int) -> DocumentReceivedNotification:
        return self.received_notifications.get(notification_id)

    def get_document_received_notification_file(self, notification_id: int) -> File:
        return self.received_notifications.file(notification_id)


# =============================================================================
# Sent Document Operations
# =============================================================================


class DocumentSentOperations:
    """Operations on documents submitted to the service."""

    def __init__(self, client: APIClient):
        self._client = client

    def list(self) -> Any:
        """
        List the sent documents.

        Returns:
            Decoded JSON response (the service returns document ids/summaries)

        """
        return _decode_list(self._client.get("/document_sent"))

    def get(self, document_id: int) -> DocumentSent:
        """
        Get the details of a sent document.

        Args:
            document_id: The document ID

        Returns:
            DocumentSent

        """
        body = self._client.get(f"/document_sent/details/{_resource_id(document_id)}")
        return DocumentSent.from_json(body)

    def send(self, document: JSONSerializable) -> DocumentSent:
        """
        Submit a new document to the interchange service.

        Args:
            document: DocumentInfo (or any object with to_dict()) describing the document

        Returns:
            DocumentSent created by the service

        """
        sent = DocumentSent.from_json(self._client.post("/document_sent/create", document))
        logger.info("Submitted document %s", sent.id)
        return sent


# =============================================================================
# Sent Notification Operations
# =============================================================================


class SentNotificationOperations:
    """Operations on notifications attached to sent documents."""

    def __init__(self, client: APIClient):
        self._client = client

    def list(self, document_id: int) -> Any:
        """
        List the notifications of a sent document.

        Args:
            document_id: The sent document ID

        Returns:
            Decoded JSON response

        """
        return _decode_list(self._client.get(f"/document_sent_notification/{_resource_id(document_id)}"))

    def get(self, notification_id: int) -> DocumentSentNotification:
        """Get the details of a sent document notification."""
        body = self._client.get(f"/document_sent_notification/details/{_resource_id(notification_id)}")
        return DocumentSentNotification.from_json(body)

    def file(self, notification_id: int) -> File:
        """Download the attachment of a sent document notification."""
        body = self._client.get(f"/document_sent_notification/attachment/{_resource_id(notification_id)}")
        return File.from_body(body)


# =============================================================================
# Received Document Operations
# =============================================================================


class DocumentReceivedOperations:
    """Operations on documents received from the service."""

    def __init__(self, client: APIClient):
        self._client = client

    def list(self) -> Any:
        """
        List the received documents.

        Returns:
            Decoded JSON response

        """
        return _decode_list(self._client.get("/document_received"))

    def get(self, document_id: int) -> DocumentReceived:
        """
        Get the details of a received document.

        Args:
            document_id: The document ID

        Returns:
            DocumentReceived

        """
        body = self._client.get(f"/document_received/details/{_resource_id(document_id)}")
        return DocumentReceived.from_json(body)

    def file(self, document_id: int) -> File:
        """Download the file of a received document."""
        return File.from_body(self._client.get(f"/document_received/attachment/{_resource_id(document_id)}"))

    def metafile(self, document_id: int) -> File:
        """Download the metafile of a received document."""
        return File.from_body(self._client.get(f"/document_received/metafile/{_resource_id(document_id)}"))


# =============================================================================
# Received Notification Operations
# =============================================================================


class ReceivedNotificationOperations:
    """Operations on notifications attached to received documents."""

    def __init__(self, client: APIClient):
        self._client = client

    def list(self, document_id: int) -> Any:
        """List the notifications of a received document."""
        return _decode_list(self._client.get(f"/document_received_notification/{_resource_id(document_id)}"))

    def get(self, notification_id: int) -> DocumentReceivedNotification:
        """Get the details of a received document notification."""
        body = self._client.get(f"/document_received_notification/details/{_resource_id(notification_id)}")
        return DocumentReceivedNotification.from_json(body)

    def file(self, notification_id: int) -> File:
        """Download the attachment of a received document notification."""
        body = self._client.get(f"/document_received_notification/attachment/{_resource_id(notification_id)}")
        return File.from_body(body)
