"""Client handle owning the pooled connection, the response buffer and the lock."""

from __future__ import annotations

import threading
from typing import Any, Iterable, Mapping

from .buffer import ResponseBuffer
from .config import TransportConfig, default_config
from .demux import demux as demux_frames
from .errors import (
    DockerExcessError,
    InvalidArgumentError,
    MalformedResponseError,
    TimeoutError,
    TransportIOError,
    error_for_status,
)
from .logger import LogLevel, create_logger
from .parser import JsonBody, encode_body
from .transport import HttpTransport, RawStreamTransport, StreamHandle, Transport
from .types import RequestOutcome, Sink

_ALLOWED_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"})


class DockerClient:
    """Primary entry point for talking to a Docker-compatible daemon.

    Buffered requests share one connection and run one at a time behind the
    client lock. Streams open their own connections and are not serialized.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        *,
        base_url: str | None = None,
        transport: Transport | None = None,
        stream_transport: RawStreamTransport | None = None,
        default_headers: Mapping[str, str] | None = None,
        logger: object | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        if config is not None and base_url is not None:
            raise InvalidArgumentError("Pass either config or base_url, not both")
        if config is None:
            config = TransportConfig.from_url(base_url) if base_url else default_config()
        self.config = config

        if config.debug and log_level == "info":
            log_level = "debug"
        self._logger = create_logger(logger=logger, level=log_level)
        self._logger.info("Initializing DockerClient for %s", config.describe())

        self._transport = transport or HttpTransport(config, logger=self._logger)
        self._streams = stream_transport or RawStreamTransport(config, logger=self._logger)
        self._default_headers = dict(default_headers or {})
        self._buffer = ResponseBuffer(config.max_response_size)
        self._lock = threading.Lock()
        self._error_lock = threading.Lock()
        self._last_error: str | None = None
        self._closed = False

    # -- buffered requests --

    def execute(
        self,
        method: str,
        path: str,
        body: JsonBody | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestOutcome:
        """Perform one HTTP exchange; failures are returned on ``outcome.error``."""
        method, payload, target = self._prepare(method, path, body)
        request_headers = dict(self._default_headers)
        if headers:
            request_headers.update(headers)

        if not self._lock.acquire(timeout=self.config.timeout):
            return self._record(
                RequestOutcome(
                    status=None,
                    error=TimeoutError(f"Timed out waiting for the client lock ({method} {path})"),
                )
            )
        try:
            # close() may have run while this call waited on the lock
            self._check_open()
            self._buffer.reset()
            try:
                status = self._transport.perform(
                    method,
                    target,
                    body=payload,
                    headers=request_headers,
                    buffer=self._buffer,
                )
            except DockerExcessError as exc:
                return self._record(RequestOutcome(status=None, error=exc))

            body_bytes = self._buffer.getvalue()
            return self._record(
                RequestOutcome(status=status, error=error_for_status(status, body_bytes), body=body_bytes)
            )
        finally:
            self._lock.release()

    def request(
        self,
        method: str,
        path: str,
        body: JsonBody | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> bytes:
        outcome = self.execute(method, path, body, headers)
        outcome.raise_for_error()
        return outcome.body

    def raw_request(
        self,
        method: str,
        path: str,
        body: JsonBody | None = None,
    ) -> tuple[int, bytes]:
        """Return status and body for any status; raise only on transport failure."""
        outcome = self.execute(method, path, body)
        if outcome.status is None:
            outcome.raise_for_error()
            raise TransportIOError("Request failed without a status")
        return outcome.status, outcome.body

    def ping(self) -> bool:
        self.request("GET", "/_ping")
        return True

    def version(self) -> dict[str, Any]:
        data = self.execute("GET", "/version").json()
        if not isinstance(data, dict):
            raise MalformedResponseError("Expected a JSON object from /version", context=data)
        return data

    # -- streams --

    def open_stream(self, method: str, path: str, body: JsonBody | None = None) -> StreamHandle:
        method, payload, target = self._prepare(method, path, body)
        try:
            handle = self._streams.open(method, target, payload)
        except DockerExcessError as exc:
            self._set_error(exc)
            raise
        self._set_error(None)
        return handle

    def demux(
        self,
        source: Iterable[bytes],
        sink: Sink,
        *,
        tty: bool = False,
        strict: bool = False,
    ) -> int:
        try:
            return demux_frames(
                source,
                sink,
                tty=tty,
                strict=strict,
                max_frame_size=self.config.max_frame_size,
                logger=self._logger,
            )
        except DockerExcessError as exc:
            self._set_error(exc)
            raise

    def stream(
        self,
        method: str,
        path: str,
        sink: Sink,
        *,
        body: JsonBody | None = None,
        tty: bool = False,
        strict: bool = False,
    ) -> int:
        """Open a stream, demultiplex it into ``sink`` and close it."""
        with self.open_stream(method, path, body) as handle:
            return self.demux(handle, sink, tty=tty, strict=strict)

    # -- diagnostics --

    def last_error(self) -> str | None:
        with self._error_lock:
            return self._last_error

    def response_body(self) -> bytes:
        return self._buffer.getvalue()

    def response_size(self) -> int:
        return self._buffer.size

    # -- lifecycle --

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._transport.close()
            self._buffer.reset()

    def __enter__(self) -> "DockerClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            error = InvalidArgumentError("Client is closed")
            self._set_error(error)
            raise error

    def _prepare(self, method: str, path: str, body: JsonBody | None) -> tuple[str, bytes | None, str]:
        try:
            method = _check_request(method, path)
            payload = encode_body(body)
        except DockerExcessError as exc:
            self._set_error(exc)
            raise
        self._check_open()
        return method, payload, self.config.versioned_path(path)

    def _record(self, outcome: RequestOutcome) -> RequestOutcome:
        self._set_error(outcome.error)
        return outcome

    def _set_error(self, error: DockerExcessError | None) -> None:
        message = error.describe() if error is not None else None
        if message is not None:
            self._logger.debug("Request failed: %s", message)
        with self._error_lock:
            self._last_error = message


def _check_request(method: str, path: str) -> str:
    normalized = (method or "").upper()
    if normalized not in _ALLOWED_METHODS:
        raise InvalidArgumentError(f"Unsupported HTTP method: {method!r}")
    if not path or not path.startswith("/"):
        raise InvalidArgumentError(f"Path must start with '/': {path!r}")
    if any(ch.isspace() for ch in path):
        raise InvalidArgumentError(f"Path must be percent-encoded: {path!r}")
    return normalized


__all__ = ["DockerClient"]
