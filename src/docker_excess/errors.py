"""Custom exceptions raised by the docker-excess transport core."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    INVALID_ARGUMENT = "invalid-argument"
    OUT_OF_MEMORY = "out-of-memory"
    TIMEOUT = "timeout"
    CONNECTION_FAILED = "connection-failed"
    TRANSPORT_IO = "transport-io"
    RESPONSE_TOO_LARGE = "response-too-large"
    REMOTE_NOT_FOUND = "remote-not-found"
    REMOTE_PERMISSION_DENIED = "remote-permission-denied"
    REMOTE_CONFLICT = "remote-conflict"
    REMOTE_INTERNAL = "remote-internal"
    REMOTE_OTHER = "remote-other"
    MALFORMED_RESPONSE = "malformed-response"
    TRUNCATED_FRAME = "truncated-frame"


class DockerExcessError(Exception):
    """Base error for all client failures."""

    kind: ErrorKind = ErrorKind.TRANSPORT_IO

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context

    def describe(self) -> str:
        """Formatted diagnostic used for the client's last-error text."""
        return f"{self.kind.value}: {self}"


class InvalidArgumentError(DockerExcessError):
    """Raised when the caller passes something the core cannot send."""

    kind = ErrorKind.INVALID_ARGUMENT


class OutOfMemoryError(DockerExcessError):
    """Raised when the response buffer cannot be grown."""

    kind = ErrorKind.OUT_OF_MEMORY


class TimeoutError(DockerExcessError):
    """Raised when connecting, transferring or locking exceeds its timeout."""

    kind = ErrorKind.TIMEOUT


class ConnectionError(DockerExcessError):
    """Raised when the client cannot reach the daemon."""

    kind = ErrorKind.CONNECTION_FAILED


class TransportIOError(DockerExcessError):
    """Raised when the connection breaks mid-transfer."""

    kind = ErrorKind.TRANSPORT_IO


class ResponseTooLargeError(DockerExcessError):
    """Raised when a response exceeds the configured size cap."""

    kind = ErrorKind.RESPONSE_TOO_LARGE

    def __init__(self, message: str, *, limit: int, context: Any | None = None) -> None:
        super().__init__(message, context=context)
        self.limit = limit


class RemoteError(DockerExcessError):
    """Base for errors reported by the daemon through an HTTP status."""

    kind = ErrorKind.REMOTE_OTHER

    def __init__(
        self,
        message: str,
        *,
        status: int,
        body: bytes = b"",
        context: Any | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.status = status
        self.body = body

    def describe(self) -> str:
        return f"{self.kind.value}: HTTP {self.status}: {self}"


class NotFoundError(RemoteError):
    """Raised when the target resource does not exist."""

    kind = ErrorKind.REMOTE_NOT_FOUND


class PermissionDeniedError(RemoteError):
    """Raised for 401/403 responses."""

    kind = ErrorKind.REMOTE_PERMISSION_DENIED


class ConflictError(RemoteError):
    kind = ErrorKind.REMOTE_CONFLICT


class ServerError(RemoteError):
    """Raised for 5xx style failures."""

    kind = ErrorKind.REMOTE_INTERNAL


class HttpError(RemoteError):
    """Raised for any other 4xx response."""

    kind = ErrorKind.REMOTE_OTHER


class MalformedResponseError(DockerExcessError):
    """Raised when a response cannot be parsed."""

    kind = ErrorKind.MALFORMED_RESPONSE


class HeaderTooLargeError(MalformedResponseError):
    """Raised when the response head never terminates within the header limit."""


class TruncatedFrameError(DockerExcessError):
    """Raised in strict mode when a stream ends inside a frame."""

    kind = ErrorKind.TRUNCATED_FRAME

    def __init__(self, message: str, *, pending: int, context: Any | None = None) -> None:
        super().__init__(message, context=context)
        self.pending = pending


def error_for_status(status: int, body: bytes = b"") -> RemoteError | None:
    """Map an HTTP status to the matching remote error, or None for success."""
    if status < 400:
        return None

    from .parser import extract_error_message

    message = extract_error_message(body.decode("utf-8", errors="replace"))
    if status == 404:
        return NotFoundError(message, status=status, body=body)
    if status in {401, 403}:
        return PermissionDeniedError(message, status=status, body=body)
    if status == 409:
        return ConflictError(message, status=status, body=body)
    if status >= 500:
        return ServerError(message, status=status, body=body)
    return HttpError(message, status=status, body=body)


__all__ = [
    "ConflictError",
    "ConnectionError",
    "DockerExcessError",
    "ErrorKind",
    "HeaderTooLargeError",
    "HttpError",
    "InvalidArgumentError",
    "MalformedResponseError",
    "NotFoundError",
    "OutOfMemoryError",
    "PermissionDeniedError",
    "RemoteError",
    "ResponseTooLargeError",
    "ServerError",
    "TimeoutError",
    "TransportIOError",
    "TruncatedFrameError",
    "error_for_status",
]
