"""Raw socket transport for attach, logs-follow and exec-start streams.

httpx buffers or iterates a response it owns; streaming endpoints need the
live socket back after the response head, so this path writes the request
by hand and splits the head from the body itself. Only the ``\\r\\n\\r\\n``
delimiter and the status code are interpreted.
"""

from __future__ import annotations

import socket
import ssl
from typing import Callable, Iterator

from ..config import TransportConfig, UnixSocket
from ..errors import (
    ConnectionError,
    DockerExcessError,
    HeaderTooLargeError,
    MalformedResponseError,
    TimeoutError,
    TransportIOError,
    error_for_status,
)
from ..logger import BoundLogger, create_logger
from ..tls import build_ssl_context

HEAD_DELIMITER = b"\r\n\r\n"
READ_SIZE = 65536

SocketFactory = Callable[[TransportConfig], socket.socket]


def build_request_head(method: str, path: str, content_length: int) -> bytes:
    return (
        f"{method} {path} HTTP/1.1\r\n"
        "Host: localhost\r\n"
        "Content-Type: application/json\r\n"
        f"Content-Length: {content_length}\r\n"
        "Connection: keep-alive\r\n"
        "\r\n"
    ).encode("latin-1")


def split_head(data: bytes) -> tuple[bytes, bytes] | None:
    """Split raw response bytes at the head delimiter, or None if it is absent.

    The returned head excludes the delimiter; the body is everything after it.
    """
    index = data.find(HEAD_DELIMITER)
    if index < 0:
        return None
    return data[:index], data[index + len(HEAD_DELIMITER) :]


def parse_status(head: bytes) -> int:
    status_line = head.split(b"\r\n", 1)[0].decode("latin-1")
    parts = status_line.split(" ", 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/") or not parts[1].isdigit():
        raise MalformedResponseError(f"Malformed status line: {status_line[:80]!r}")
    return int(parts[1])


def read_response_head(sock: socket.socket, limit: int) -> tuple[bytes, bytes]:
    """Read until the head delimiter; return ``(head, prefetched_body)``.

    Head scanning and body capture share one buffer so bytes that arrive in
    the same read as the delimiter are kept as body.
    """
    data = bytearray()
    while True:
        chunk = sock.recv(READ_SIZE)
        if not chunk:
            raise MalformedResponseError(
                f"Connection closed before the response head ended ({len(data)} bytes read)"
            )
        data += chunk
        parts = split_head(bytes(data))
        if parts is not None and len(parts[0]) + len(HEAD_DELIMITER) <= limit:
            return parts
        if len(data) >= limit:
            raise HeaderTooLargeError(f"Response head exceeds {limit} bytes without a terminator")


class StreamHandle:
    """Live response body over a dedicated socket.

    Reads return ``b""`` at end-of-stream and after ``close()``, which may be
    called from another thread to cancel a blocked reader.
    """

    def __init__(
        self,
        sock: socket.socket,
        *,
        status: int,
        head: bytes,
        prefetched: bytes = b"",
        logger: BoundLogger | None = None,
    ) -> None:
        self._socket = sock
        self.status = status
        self.head = head
        self._pending = bytearray(prefetched)
        self._closed = False
        self._eof = False
        self._logger = logger or create_logger().child("stream")

    @property
    def closed(self) -> bool:
        return self._closed

    def settimeout(self, seconds: float | None) -> None:
        """Change the per-read timeout; None waits indefinitely (for follow streams)."""
        if not self._closed:
            self._socket.settimeout(seconds)

    def read(self, size: int = READ_SIZE) -> bytes:
        if self._pending:
            data = bytes(self._pending[:size])
            del self._pending[:size]
            return data
        if self._closed or self._eof:
            return b""
        try:
            chunk = self._socket.recv(size)
        except socket.timeout as exc:
            raise TimeoutError(f"Stream read timed out: {exc}") from exc
        except OSError as exc:
            if self._closed:
                return b""
            raise TransportIOError(f"Stream read failed: {exc}") from exc
        if not chunk:
            self._eof = True
            self._logger.debug("Stream reached end-of-stream")
        return chunk

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read()
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._pending.clear()
        try:
            self._socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._socket.close()

    def __enter__(self) -> "StreamHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class RawStreamTransport:
    """Opens one independent connection per stream; never touches the pooled client."""

    def __init__(
        self,
        config: TransportConfig,
        *,
        socket_factory: SocketFactory | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._config = config
        self._socket_factory = socket_factory
        self._ssl_context: ssl.SSLContext | None = None
        if config.tls is not None and socket_factory is None:
            self._ssl_context = build_ssl_context(config.tls)
        self._logger = (logger or create_logger()).child("stream")

    def open(self, method: str, path: str, body: bytes | None = None) -> StreamHandle:
        payload = body or b""
        sock = self._connect()
        try:
            sock.sendall(build_request_head(method, path, len(payload)) + payload)
            head, prefetched = read_response_head(sock, self._config.header_limit)
            status = parse_status(head)
        except socket.timeout as exc:
            sock.close()
            raise TimeoutError(f"Stream request {method} {path} timed out: {exc}") from exc
        except OSError as exc:
            sock.close()
            raise TransportIOError(f"Stream request {method} {path} failed: {exc}") from exc
        except DockerExcessError:
            sock.close()
            raise

        self._logger.debug(
            "Stream %s %s status=%d head=%d bytes, body prefetch=%d bytes",
            method,
            path,
            status,
            len(head),
            len(prefetched),
        )
        error = error_for_status(status, prefetched)
        if error is not None:
            sock.close()
            raise error
        return StreamHandle(sock, status=status, head=head, prefetched=prefetched, logger=self._logger)

    def _connect(self) -> socket.socket:
        if self._socket_factory is not None:
            return self._socket_factory(self._config)

        endpoint = self._config.endpoint
        self._logger.info("Opening stream connection to %s", self._config.describe())
        sock: socket.socket | None = None
        try:
            if isinstance(endpoint, UnixSocket):
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                sock.settimeout(self._config.connect_timeout)
                sock.connect(endpoint.path)
            else:
                sock = socket.create_connection(
                    (endpoint.host, endpoint.port), timeout=self._config.connect_timeout
                )
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                if self._ssl_context is not None:
                    sock = self._ssl_context.wrap_socket(sock, server_hostname=endpoint.host)
            sock.settimeout(self._config.timeout)
            return sock
        except socket.timeout as exc:
            if sock is not None:
                sock.close()
            raise TimeoutError(f"Connecting to {self._config.describe()} timed out") from exc
        except OSError as exc:
            if sock is not None:
                sock.close()
            raise ConnectionError(f"Cannot connect to {self._config.describe()}: {exc}") from exc


__all__ = [
    "HEAD_DELIMITER",
    "RawStreamTransport",
    "StreamHandle",
    "build_request_head",
    "parse_status",
    "read_response_head",
    "split_head",
]
