import pytest

from docker_excess import (
    Channel,
    FrameDemultiplexer,
    MalformedResponseError,
    TruncatedFrameError,
    demux,
    iter_frames,
    pack_frame,
)
from docker_excess.demux import parse_frame_header

STDOUT_HI = bytes.fromhex("0100000000000002") + b"hi"
STDERR_OOPS = bytes.fromhex("0200000000000004") + b"oops"
STREAM = STDOUT_HI + STDERR_OOPS


def _chunks(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]


def _collect(source, **kwargs) -> list[tuple[Channel, bytes]]:
    received: list[tuple[Channel, bytes]] = []
    demux(source, lambda channel, payload: received.append((channel, payload)), **kwargs)
    return received


def test_pack_frame_matches_wire_layout() -> None:
    assert pack_frame(Channel.STDOUT, b"hi") == STDOUT_HI
    assert pack_frame(Channel.STDERR, b"oops") == STDERR_OOPS


def test_parse_frame_header() -> None:
    assert parse_frame_header(bytes.fromhex("02000000000001ff")) == (2, 511)


@pytest.mark.parametrize("size", [1, 2, 3, 7, 8, 9, len(STREAM)])
def test_demux_is_independent_of_chunking(size: int) -> None:
    assert _collect(_chunks(STREAM, size)) == [
        (Channel.STDOUT, b"hi"),
        (Channel.STDERR, b"oops"),
    ]


def test_frame_is_not_delivered_before_payload_completes() -> None:
    demuxer = FrameDemultiplexer()
    assert demuxer.feed(STDOUT_HI[:-1]) == []
    assert demuxer.pending == len(STDOUT_HI) - 1
    frames = demuxer.feed(STDOUT_HI[-1:])
    assert [(f.channel, f.payload) for f in frames] == [(Channel.STDOUT, b"hi")]
    assert demuxer.pending == 0


def test_truncated_trailing_frame_is_dropped_in_lenient_mode() -> None:
    received = _collect([STDOUT_HI, b"\x01\x00\x00"])
    assert received == [(Channel.STDOUT, b"hi")]


def test_truncated_trailing_frame_raises_in_strict_mode() -> None:
    received: list[tuple[Channel, bytes]] = []
    with pytest.raises(TruncatedFrameError) as excinfo:
        demux(
            [STDOUT_HI, b"\x01\x00\x00"],
            lambda channel, payload: received.append((channel, payload)),
            strict=True,
        )
    assert received == [(Channel.STDOUT, b"hi")]
    assert excinfo.value.pending == 3


def test_stdin_and_unknown_selectors_are_skipped() -> None:
    stream = pack_frame(0, b"echo") + pack_frame(3, b"sys") + pack_frame(Channel.STDERR, b"err")
    assert _collect([stream]) == [(Channel.STDERR, b"err")]


def test_empty_payload_frame_is_delivered() -> None:
    assert _collect([pack_frame(Channel.STDOUT, b"")]) == [(Channel.STDOUT, b"")]


def test_tty_mode_passes_bytes_through_as_stdout() -> None:
    # A header-shaped prefix is still plain terminal output in tty mode
    received = _collect([STDOUT_HI[:5], STDOUT_HI[5:]], tty=True)
    assert received == [(Channel.STDOUT, STDOUT_HI[:5]), (Channel.STDOUT, STDOUT_HI[5:])]


def test_iter_frames_is_lazy() -> None:
    frames = iter_frames(iter(_chunks(STREAM, 4)))
    first = next(frames)
    assert first.channel is Channel.STDOUT
    assert first.payload == b"hi"
    assert [f.payload for f in frames] == [b"oops"]


def test_demux_returns_frame_count() -> None:
    assert demux([STREAM], lambda channel, payload: None) == 2


def test_oversized_frame_header_is_rejected_before_buffering() -> None:
    demuxer = FrameDemultiplexer(max_frame_size=1024)
    with pytest.raises(MalformedResponseError):
        demuxer.feed(bytes.fromhex("01000000ffffffff") + b"x")
    assert demuxer.pending == 9
    # The stream stays failed
    with pytest.raises(MalformedResponseError):
        demuxer.feed(STDOUT_HI)
    with pytest.raises(MalformedResponseError):
        demuxer.finish()


def test_frames_before_an_oversized_header_are_delivered() -> None:
    oversized = pack_frame(Channel.STDERR, b"x" * 32)
    received: list[tuple[Channel, bytes]] = []
    with pytest.raises(MalformedResponseError):
        demux(
            [STDOUT_HI + oversized],
            lambda channel, payload: received.append((channel, payload)),
            max_frame_size=16,
        )
    assert received == [(Channel.STDOUT, b"hi")]


def test_frame_at_the_limit_is_accepted() -> None:
    assert _collect([STREAM], max_frame_size=4) == [
        (Channel.STDOUT, b"hi"),
        (Channel.STDERR, b"oops"),
    ]
