"""Demultiplexing of the daemon's stdout/stderr stream format.

Each frame carries an 8-byte header:
  - byte 0: stream selector (0 = stdin echo, 1 = stdout, 2 = stderr)
  - bytes 1-3: reserved
  - bytes 4-7: payload length (big-endian uint32)

Sessions negotiated with a pseudo-terminal carry no headers at all; the
whole byte stream is stdout. The two layouts are not self-describing, so
the caller always states which one is in effect.
"""

from __future__ import annotations

import struct
from typing import Iterable, Iterator

from .errors import MalformedResponseError, TruncatedFrameError
from .logger import BoundLogger, create_logger
from .types import Channel, Sink, StreamFrame

HEADER_SIZE = 8
_HEADER_FORMAT = ">BxxxI"


def parse_frame_header(header: bytes) -> tuple[int, int]:
    """Return ``(selector, payload_length)`` for an 8-byte frame header."""
    selector, length = struct.unpack(_HEADER_FORMAT, header)
    return selector, length


def pack_frame(channel: Channel | int, payload: bytes) -> bytes:
    return struct.pack(_HEADER_FORMAT, int(channel), len(payload)) + payload


class FrameDemultiplexer:
    """Incremental frame decoder.

    ``feed`` accepts chunks of any size and returns the frames completed by
    that chunk, in arrival order. A frame is never returned before its whole
    declared payload has arrived. With ``max_frame_size`` set, a header
    declaring a larger payload raises MalformedResponseError before any of
    it is buffered; otherwise a frame may declare up to 4 GiB.
    """

    def __init__(
        self,
        *,
        tty: bool = False,
        strict: bool = False,
        max_frame_size: int = 0,
        logger: BoundLogger | None = None,
    ) -> None:
        self.tty = tty
        self.strict = strict
        self.max_frame_size = max_frame_size
        self._buffer = bytearray()
        self._failure: MalformedResponseError | None = None
        self._logger = (logger or create_logger()).child("demux")

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[StreamFrame]:
        if self._failure is not None:
            raise self._failure
        if not chunk:
            return []
        if self.tty:
            return [StreamFrame(Channel.STDOUT, bytes(chunk))]

        self._buffer += chunk
        frames: list[StreamFrame] = []
        offset = 0
        while len(self._buffer) - offset >= HEADER_SIZE:
            selector, length = parse_frame_header(self._buffer[offset : offset + HEADER_SIZE])
            if self.max_frame_size and length > self.max_frame_size:
                # Frames completed before the oversized header are still delivered
                self._failure = MalformedResponseError(
                    f"Frame declares {length} bytes, above the {self.max_frame_size} byte limit"
                )
                break
            end = offset + HEADER_SIZE + length
            if len(self._buffer) < end:
                break
            payload = bytes(self._buffer[offset + HEADER_SIZE : end])
            offset = end
            frame = self._to_frame(selector, payload)
            if frame is not None:
                frames.append(frame)
        if offset:
            del self._buffer[:offset]
        if self._failure is not None and not frames:
            raise self._failure
        return frames

    def finish(self) -> None:
        """Signal end-of-stream; handle a trailing incomplete frame."""
        if self._failure is not None:
            raise self._failure
        pending = len(self._buffer)
        self._buffer.clear()
        if not pending:
            return
        if self.strict:
            raise TruncatedFrameError(
                f"Stream ended inside a frame ({pending} bytes buffered)", pending=pending
            )
        self._logger.warn("Dropping incomplete trailing frame (%d bytes buffered)", pending)

    def _to_frame(self, selector: int, payload: bytes) -> StreamFrame | None:
        if selector == Channel.STDOUT:
            channel = Channel.STDOUT
        elif selector == Channel.STDERR:
            channel = Channel.STDERR
        elif selector == Channel.STDIN:
            return None
        else:
            self._logger.warn("Skipping frame with unknown stream selector %d", selector)
            return None
        self._logger.trace("Frame %s bytes=%d", channel.name.lower(), len(payload))
        return StreamFrame(channel, payload)


def iter_frames(
    source: Iterable[bytes],
    *,
    tty: bool = False,
    strict: bool = False,
    max_frame_size: int = 0,
    logger: BoundLogger | None = None,
) -> Iterator[StreamFrame]:
    """Pull-based demultiplexing over any iterable of byte chunks."""
    demuxer = FrameDemultiplexer(tty=tty, strict=strict, max_frame_size=max_frame_size, logger=logger)
    for chunk in source:
        yield from demuxer.feed(chunk)
    demuxer.finish()


def demux(
    source: Iterable[bytes],
    sink: Sink,
    *,
    tty: bool = False,
    strict: bool = False,
    max_frame_size: int = 0,
    logger: BoundLogger | None = None,
) -> int:
    """Deliver each decoded frame to ``sink(channel, payload)``; return the frame count."""
    delivered = 0
    for frame in iter_frames(
        source, tty=tty, strict=strict, max_frame_size=max_frame_size, logger=logger
    ):
        sink(frame.channel, frame.payload)
        delivered += 1
    return delivered


__all__ = [
    "FrameDemultiplexer",
    "HEADER_SIZE",
    "demux",
    "iter_frames",
    "pack_frame",
    "parse_frame_header",
]
