import socket
import threading

import pytest

from docker_excess import (
    Channel,
    HeaderTooLargeError,
    MalformedResponseError,
    NotFoundError,
    Tcp,
    TransportConfig,
    demux,
    pack_frame,
)
from docker_excess.transport.stream import (
    RawStreamTransport,
    StreamHandle,
    build_request_head,
    parse_status,
    read_response_head,
    split_head,
)

RESPONSE = b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n\r\nok"


def test_build_request_head_is_exact() -> None:
    assert build_request_head("POST", "/v1.41/exec/abc/start", 27) == (
        b"POST /v1.41/exec/abc/start HTTP/1.1\r\n"
        b"Host: localhost\r\n"
        b"Content-Type: application/json\r\n"
        b"Content-Length: 27\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


def test_split_head_keeps_body_bytes() -> None:
    assert split_head(RESPONSE + b"more") == (b"HTTP/1.1 200 OK\r\nContent-Length: 2", b"okmore")
    assert split_head(b"HTTP/1.1 200 OK\r\n") is None


@pytest.mark.parametrize(
    ("head", "status"),
    [(b"HTTP/1.1 200 OK", 200), (b"HTTP/1.0 101 UPGRADED\r\nX: y", 101), (b"HTTP/1.1 404", 404)],
)
def test_parse_status(head: bytes, status: int) -> None:
    assert parse_status(head) == status


def test_parse_status_rejects_garbage() -> None:
    with pytest.raises(MalformedResponseError):
        parse_status(b"GARBAGE")


def test_head_split_preserves_prefetched_body() -> None:
    left, right = socket.socketpair()
    try:
        right.sendall(RESPONSE + b"more")
        right.shutdown(socket.SHUT_WR)
        head, prefetched = read_response_head(left, 8192)
        handle = StreamHandle(left, status=parse_status(head), head=head, prefetched=prefetched)
        assert handle.status == 200
        assert b"".join(handle) == b"okmore"
        assert handle.read() == b""
    finally:
        left.close()
        right.close()


def test_delimiter_split_across_reads_is_found() -> None:
    left, right = socket.socketpair()

    def _writer() -> None:
        for part in (b"HTTP/1.1 200 OK\r\n\r", b"\n", b"body"):
            right.sendall(part)
        right.shutdown(socket.SHUT_WR)

    thread = threading.Thread(target=_writer)
    thread.start()
    try:
        head, prefetched = read_response_head(left, 8192)
        rest = prefetched + b"".join(iter(lambda: left.recv(1024), b""))
        assert head == b"HTTP/1.1 200 OK"
        assert rest == b"body"
    finally:
        thread.join()
        left.close()
        right.close()


def test_missing_delimiter_hits_header_limit() -> None:
    left, right = socket.socketpair()
    try:
        right.sendall(b"HTTP/1.1 200 OK\r\n" + b"X-Filler: " + b"a" * 200)
        with pytest.raises(HeaderTooLargeError):
            read_response_head(left, 64)
    finally:
        left.close()
        right.close()


def test_peer_close_before_head_is_malformed() -> None:
    left, right = socket.socketpair()
    try:
        right.sendall(b"HTTP/1.1 200")
        right.close()
        with pytest.raises(MalformedResponseError):
            read_response_head(left, 8192)
    finally:
        left.close()


def test_read_after_close_returns_end_of_stream() -> None:
    left, right = socket.socketpair()
    try:
        handle = StreamHandle(left, status=200, head=b"", prefetched=b"pending")
        handle.close()
        assert handle.closed
        assert handle.read() == b""
        handle.close()
    finally:
        right.close()


def test_close_from_another_thread_unblocks_reader() -> None:
    left, right = socket.socketpair()
    handle = StreamHandle(left, status=200, head=b"")
    handle.settimeout(None)
    result: list[bytes] = []
    reader = threading.Thread(target=lambda: result.append(handle.read()))
    reader.start()
    try:
        handle.close()
        reader.join(timeout=5)
        assert not reader.is_alive()
        assert result == [b""]
    finally:
        right.close()


class _OneShotServer:
    """Loopback server that records one request and replies with canned bytes."""

    def __init__(self, reply: bytes) -> None:
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self.port = self._listener.getsockname()[1]
        self.request = b""
        self._reply = reply
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        conn, _ = self._listener.accept()
        with conn:
            data = b""
            while b"\r\n\r\n" not in data:
                data += conn.recv(4096)
            head, _, body = data.partition(b"\r\n\r\n")
            length = int(head.split(b"Content-Length: ")[1].split(b"\r\n")[0])
            while len(body) < length:
                body += conn.recv(4096)
            self.request = head + b"\r\n\r\n" + body
            conn.sendall(self._reply)
        self._listener.close()

    def join(self) -> None:
        self._thread.join(timeout=5)


def test_open_stream_writes_request_and_demuxes_body() -> None:
    body = pack_frame(Channel.STDOUT, b"hello\n") + pack_frame(Channel.STDERR, b"warn\n")
    server = _OneShotServer(b"HTTP/1.1 200 OK\r\nContent-Type: application/vnd.docker.raw-stream\r\n\r\n" + body)
    config = TransportConfig(endpoint=Tcp("127.0.0.1", server.port), timeout=5)
    transport = RawStreamTransport(config)

    received: list[tuple[Channel, bytes]] = []
    with transport.open("POST", "/v1.41/exec/abc/start", b'{"Detach":false}') as handle:
        demux(handle, lambda channel, payload: received.append((channel, payload)))
    server.join()

    assert server.request == build_request_head("POST", "/v1.41/exec/abc/start", 16) + b'{"Detach":false}'
    assert received == [(Channel.STDOUT, b"hello\n"), (Channel.STDERR, b"warn\n")]


def test_open_stream_maps_error_status() -> None:
    server = _OneShotServer(b'HTTP/1.1 404 Not Found\r\n\r\n{"message":"No such exec instance"}')
    config = TransportConfig(endpoint=Tcp("127.0.0.1", server.port), timeout=5)
    with pytest.raises(NotFoundError) as excinfo:
        RawStreamTransport(config).open("GET", "/v1.41/containers/x/logs")
    server.join()
    assert excinfo.value.status == 404
