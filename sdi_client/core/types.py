"""
Core types for the SDI document-exchange API.

The remote service owns the layout of its documents and notifications, so
response records do not declare fields: they keep the exact body they were
decoded from and expose a read-only view of it.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def _text(body: bytes | str, errors: str = "strict") -> str:
    if isinstance(body, bytes):
        return body.decode("utf-8", errors=errors)
    return body


# =============================================================================
# Request Payloads
# =============================================================================


@runtime_checkable
class JSONSerializable(Protocol):
    """Anything that can be sent as a request body."""

    def to_dict(self) -> Any: ...


@dataclass
class DocumentInfo:
    """
    A document to submit to the interchange service.

    Field names and values are defined by the remote API and passed through
    unchanged.

    Example:
        DocumentInfo({"filename": "IT01234567890_00001.xml", "content": encoded})

    """

    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DocumentInfo":
        return cls(fields=dict(data))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request."""
        return dict(self.fields)


# =============================================================================
# Response Records
# =============================================================================


@dataclass(frozen=True)
class Record:
    """A read-only record decoded from one JSON response body."""

    raw: str
    data: Any = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _freeze(json.loads(self.raw)))

    @classmethod
    def from_json(cls, body: bytes | str):
        """Create from a raw API response body."""
        return cls(raw=_text(body))

    @property
    def id(self) -> Any:
        """The record identifier, when the service includes one."""
        return self.get("id")

    def get(self, key: str, default: Any = None) -> Any:
        if isinstance(self.data, Mapping):
            return self.data.get(key, default)
        return default

    def __getitem__(self, key: Any) -> Any:
        return self.data[key]

    def __contains__(self, key: Any) -> bool:
        return isinstance(self.data, Mapping) and key in self.data

    def to_dict(self) -> Any:
        """Return a fresh, mutable copy of the decoded body."""
        return json.loads(self.raw)


class DocumentSent(Record):
    """A document submitted to the interchange service."""


class DocumentReceived(Record):
    """A document received through the interchange service."""


class DocumentSentNotification(Record):
    """A notification attached to a sent document."""


class DocumentReceivedNotification(Record):
    """A notification attached to a received document."""


# =============================================================================
# Files
# =============================================================================


@dataclass(frozen=True)
class File:
    """An attachment or metafile downloaded from the service."""

    content: bytes = field(repr=False)

    @classmethod
    def from_body(cls, body: bytes | str) -> "File":
        """Create from a raw API response body."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        return cls(content=body)

    @property
    def size(self) -> int:
        return len(self.content)

    def text(self, encoding: str = "utf-8") -> str:
        return self.content.decode(encoding)

    def save(self, path: str | Path) -> Path:
        """Write the file content to ``path`` and return it."""
        target = Path(path)
        target.write_bytes(self.content)
        return target

    def __repr__(self) -> str:
        return f"File(size={self.size})"


# =============================================================================
# Errors
# =============================================================================


@dataclass(frozen=True)
class ErrorMessage:
    """
    Body of a failed response.

    ``data`` is None when the service did not answer with JSON; the raw text
    is always kept.
    """

    raw: str
    data: Any = None

    @classmethod
    def from_body(cls, body: bytes | str) -> "ErrorMessage":
        """Create from a raw API response body."""
        text = _text(body, errors="replace")
        try:
            data = _freeze(json.loads(text))
        except json.JSONDecodeError:
            data = None
        return cls(raw=text, data=data)

    @property
    def message(self) -> str:
        """Best-effort human readable error message."""
        # Handle {"error": "message"}, {"error": {"message": "..."}} and {"message": "..."}
        if isinstance(self.data, Mapping):
            error = self.data.get("error")
            if isinstance(error, str):
                return error
            if isinstance(error, Mapping) and isinstance(error.get("message"), str):
                return error["message"]
            if isinstance(self.data.get("message"), str):
                return self.data["message"]
        return self.raw.strip()

    def to_dict(self) -> Any:
        """Return a fresh, mutable copy of the decoded body."""
        if self.data is None:
            return None
        return json.loads(self.raw)
