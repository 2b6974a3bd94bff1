"""
Core HTTP client for the SDI document-exchange API.

Handles authentication, request execution, timeouts and error classification.
"""

import functools
import http.client
import json
import logging
import os
import ssl
import time
import urllib.error
import urllib.request
from typing import Any

from sdi_client.core.types import ErrorMessage, JSONSerializable

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_TIMEOUT = 3600
DEFAULT_CONNECT_TIMEOUT = 120

READ_CHUNK_SIZE = 64 * 1024

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class SdiClientError(Exception):
    """Base error class for SDI client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class RequestFailure(SdiClientError):
    """
    A request that did not end with HTTP 200.

    Transport failures (DNS, refused connection, TLS, timeout) carry
    ``error_code``/``error_reason`` and no response. Failures after an HTTP
    status was obtained carry ``status`` and the decoded ``response``.
    """

    def __init__(
        self,
        message: str,
        endpoint: str,
        path: str,
        status: int = 0,
        response: ErrorMessage | None = None,
        error_code: int | str | None = None,
        error_reason: str | None = None,
    ):
        details = {}
        if response is not None and response.data is not None:
            details["response"] = response.to_dict()
        super().__init__(message, details)
        self.endpoint = endpoint
        self.path = path
        self.status = status
        self.response = response
        self.error_code = error_code
        self.error_reason = error_reason

    @property
    def url(self) -> str:
        return f"{self.endpoint}{self.path}"

    @property
    def is_transport_error(self) -> bool:
        """True when no HTTP status was obtained."""
        return self.response is None

    @property
    def is_response_error(self) -> bool:
        """True when the service answered with a status other than 200."""
        return self.response is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        result["url"] = self.url
        if self.status:
            result["status"] = self.status
        if self.error_code is not None:
            result["error_code"] = self.error_code
        return result


class ValidationError(SdiClientError):
    """Validation error for local input/data issues (not API errors)."""


class ConfigurationError(SdiClientError):
    """Missing or malformed client configuration."""


# =============================================================================
# Transport
# =============================================================================


def _limit(seconds: float | None) -> float | None:
    """A timeout of 0 (or less) means no limit."""
    if seconds is None or seconds <= 0:
        return None
    return seconds


class _Deadline:
    """
    Absolute time limit of one call.

    The connection registers its socket here so every later wait (sending,
    response headers, each body read) is bounded by the time left.
    """

    def __init__(self, seconds: float | None):
        self.seconds = seconds
        self.expires = None if seconds is None else time.monotonic() + seconds
        self.sock = None

    def remaining(self) -> float | None:
        if self.expires is None:
            return None
        remaining = self.expires - time.monotonic()
        if remaining <= 0:
            raise TimeoutError("total request timeout exceeded")
        return remaining

    def restrict(self) -> None:
        remaining = self.remaining()
        # http.client closes the socket as soon as the last body byte is read
        if self.sock is not None and self.sock.fileno() != -1:
            self.sock.settimeout(remaining)


class _DeadlineConnectionMixin:
    """Connects under the connect timeout, then waits under the call deadline."""

    def __init__(self, *args, deadline: _Deadline, **kwargs):
        super().__init__(*args, **kwargs)
        self.deadline = deadline

    def connect(self) -> None:
        remaining = self.deadline.remaining()
        if remaining is not None and (self.timeout is None or self.timeout > remaining):
            self.timeout = remaining
        super().connect()
        # Redirects open a new connection; only the latest socket is live.
        self.deadline.sock = self.sock
        self.deadline.restrict()


class _HTTPConnection(_DeadlineConnectionMixin, http.client.HTTPConnection):
    pass


class _HTTPSConnection(_DeadlineConnectionMixin, http.client.HTTPSConnection):
    pass


class _HTTPHandler(urllib.request.HTTPHandler):
    def __init__(self, deadline: _Deadline):
        super().__init__()
        self._deadline = deadline

    def http_open(self, req):
        return self.do_open(functools.partial(_HTTPConnection, deadline=self._deadline), req)


class _HTTPSHandler(urllib.request.HTTPSHandler):
    def __init__(self, deadline: _Deadline, context: ssl.SSLContext):
        super().__init__(context=context)
        self._deadline = deadline

    def https_open(self, req):
        return self.do_open(
            functools.partial(_HTTPSConnection, deadline=self._deadline),
            req,
            context=self._context,
        )


def ssl_context(verify: bool = True) -> ssl.SSLContext:
    """Build the TLS context; ``verify=False`` skips certificate and hostname checks."""
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _read_body(response, deadline: _Deadline) -> bytes:
    chunks = []
    while True:
        deadline.restrict()
        # read1 returns whatever one socket read yields instead of waiting for a full chunk
        chunk = response.read1(READ_CHUNK_SIZE)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def _error_code(reason: Any) -> int | str | None:
    if isinstance(reason, OSError) and reason.errno is not None:
        return reason.errno
    if isinstance(reason, BaseException):
        return type(reason).__name__
    return None


# =============================================================================
# Environment configuration
# =============================================================================


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    if value.lower() in _TRUE_VALUES:
        return True
    if value.lower() in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def settings_from_env(**overrides: Any) -> dict[str, Any]:
    """
    Collect client settings from SDI_* environment variables.

    Keyword overrides take precedence over the environment.

    Raises:
        ConfigurationError: When endpoint, username or token are missing,
            or a numeric/boolean variable does not parse

    """
    settings: dict[str, Any] = {
        "endpoint": os.environ.get("SDI_ENDPOINT"),
        "username": os.environ.get("SDI_USERNAME"),
        "api_token": os.environ.get("SDI_API_TOKEN"),
        "timeout": _env_float("SDI_TIMEOUT", DEFAULT_TIMEOUT),
        "connect_timeout": _env_float("SDI_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT),
        "verify_tls": _env_bool("SDI_VERIFY_TLS", True),
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})

    missing = [key for key in ("endpoint", "username", "api_token") if not settings[key]]
    if missing:
        names = ", ".join(f"SDI_{key.upper()}" for key in missing)
        raise ConfigurationError(f"Missing client configuration: {names}", details={"missing": missing})
    return settings


# =============================================================================
# Client
# =============================================================================


class APIClient:
    """
    Low-level HTTP client for the SDI document-exchange API.

    Handles:
    - Authentication via the ``username.api_token`` credential
    - Connect and total timeouts
    - Error classification into RequestFailure

    Every call is independent: one connection per request, no retries.
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
        Initialize the API client.

        Args:
            endpoint: API base URL, used verbatim as the prefix of every path
            username: Account user name
            api_token: API token paired with the user name
            timeout: Maximum seconds for a whole request
            connect_timeout: Maximum seconds to establish the connection
            verify_tls: Verify the server certificate and host name

        """
        self.endpoint = endpoint
        self.token = f"{username}.{api_token}"
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.verify_tls = verify_tls

    @classmethod
    def from_env(cls, **overrides: Any) -> "APIClient":
        """Create a client from SDI_* environment variables."""
        return cls(**settings_from_env(**overrides))

    def set_timeout(self, timeout: float) -> None:
        """Set the maximum seconds for a whole request."""
        self.timeout = timeout

    def set_connect_timeout(self, connect_timeout: float) -> None:
        """Set the maximum seconds to wait for the connection."""
        self.connect_timeout = connect_timeout

    def _build_url(self, path: str) -> str:
        """Build full URL from path."""
        return f"{self.endpoint}{path}"

    def _build_opener(self, deadline: _Deadline, verify_tls: bool) -> urllib.request.OpenerDirector:
        return urllib.request.build_opener(
            _HTTPHandler(deadline),
            _HTTPSHandler(deadline, ssl_context(verify_tls)),
        )

    def _encode_body(self, body: Any) -> bytes | None:
        if body is None:
            return None
        value = body.to_dict() if isinstance(body, JSONSerializable) else body
        try:
            return json.dumps(value).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Request body is not JSON serializable: {e}") from e

    def _send(
        self,
        opener: urllib.request.OpenerDirector,
        request: urllib.request.Request,
        connect_timeout: float | None,
        deadline: _Deadline,
    ) -> tuple[int, bytes]:
        try:
            response = opener.open(request, timeout=connect_timeout)
        except urllib.error.HTTPError as e:
            # Non-2xx statuses arrive as HTTPError; the body is still readable.
            response = e
        with response:
            return response.status, _read_body(response, deadline)

    def execute(self, method: str, path: str, body: Any = None) -> bytes:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST)
            path: API path including any identifier (e.g., /document_sent/details/42)
            body: JSON-serializable payload; ``None`` sends no body

        Returns:
            Raw response body of an HTTP 200 response

        Raises:
            RequestFailure: On transport errors or any status other than 200
            ValidationError: When the body cannot be serialized

        """
        # Snapshot configuration so setters never affect a call in flight.
        timeout = _limit(self.timeout)
        connect_timeout = _limit(self.connect_timeout)
        if timeout is not None and (connect_timeout is None or connect_timeout > timeout):
            connect_timeout = timeout
        verify_tls = self.verify_tls

        url = self._build_url(path)
        payload = self._encode_body(body)
        headers = {
            "Content-Type": "application/json",
            "Authorization": self.token,
        }
        try:
            request = urllib.request.Request(url, data=payload, headers=headers, method=method)
        except ValueError as e:
            raise ConfigurationError(f"Invalid request URL {url!r}: {e}") from e
        logger.debug("%s %s (%d bytes)", method, url, len(payload) if payload else 0)
        started = time.monotonic()
        deadline = _Deadline(timeout)
        opener = self._build_opener(deadline, verify_tls)
        try:
            status, data = self._send(opener, request, connect_timeout, deadline)

        except urllib.error.URLError as e:
            raise self._transport_failure(method, path, e.reason) from e

        except (OSError, http.client.HTTPException) as e:
            raise self._transport_failure(method, path, e) from e

        elapsed = time.monotonic() - started
        logger.debug("%s %s -> %d (%d bytes, %.3fs)", method, url, status, len(data), elapsed)

        if status != 200:
            error = ErrorMessage.from_body(data)
            logger.warning("%s %s failed with HTTP %d: %s", method, url, status, error.message)
            raise RequestFailure(
                f'Http request "{url}" error: HTTP {status}: {error.message}',
                endpoint=self.endpoint,
                path=path,
                status=status,
                response=error,
            )
        return data

    def _transport_failure(self, method: str, path: str, reason: Any) -> RequestFailure:
        url = self._build_url(path)
        code = _error_code(reason)
        message = str(reason) or type(reason).__name__
        logger.warning("%s %s transport error: [%s] %s", method, url, code, message)
        return RequestFailure(
            f'Request "{url}" error: [{code}] {message}',
            endpoint=self.endpoint,
            path=path,
            error_code=code,
            error_reason=message,
        )

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def get(self, path: str) -> bytes:
        """Make a GET request."""
        return self.execute("GET", path)

    def post(self, path: str, body: Any = None) -> bytes:
        """Make a POST request."""
        return self.execute("POST", path, body)
