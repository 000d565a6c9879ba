import math

import pytest

from docker_excess import InvalidArgumentError, ResponseBuffer, ResponseTooLargeError
from docker_excess.buffer import INITIAL_CAPACITY


def test_append_tracks_size_and_content() -> None:
    buffer = ResponseBuffer()
    buffer.append(b"hello ")
    buffer.append(b"world")
    assert buffer.size == 11
    assert buffer.getvalue() == b"hello world"
    assert buffer.capacity == INITIAL_CAPACITY


def test_binary_payloads_keep_zero_bytes() -> None:
    buffer = ResponseBuffer()
    buffer.append(b"a\x00b\x00")
    assert buffer.size == 4
    assert bytes(buffer) == b"a\x00b\x00"


def test_growth_doubles_until_append_fits() -> None:
    buffer = ResponseBuffer()
    buffer.append(b"x" * (INITIAL_CAPACITY * 5))
    # 8K -> 16K -> 32K -> 64K in a single reservation
    assert buffer.capacity == INITIAL_CAPACITY * 8
    assert buffer.growths == 1


@pytest.mark.parametrize("chunk_size", [1, 7, 1000, 4096])
def test_growth_count_is_logarithmic(chunk_size: int) -> None:
    buffer = ResponseBuffer()
    total = 200_000
    remaining = total
    while remaining:
        step = min(chunk_size, remaining)
        buffer.append(b"z" * step)
        remaining -= step
    assert buffer.size == total
    assert buffer.size <= buffer.capacity
    assert buffer.growths <= math.ceil(math.log2(total / INITIAL_CAPACITY)) + 1


@pytest.mark.parametrize("chunks", [[10], [3, 3, 3, 3], [1] * 12, [9, 9]])
def test_cap_is_enforced_exactly(chunks: list[int]) -> None:
    buffer = ResponseBuffer(max_size=10)
    with pytest.raises(ResponseTooLargeError) as excinfo:
        for size in chunks:
            buffer.append(b"q" * size)
        buffer.append(b"!")
    assert buffer.size == 10
    assert excinfo.value.limit == 10


def test_append_at_cap_boundary_succeeds() -> None:
    buffer = ResponseBuffer(max_size=4)
    buffer.append(b"abcd")
    assert buffer.size == 4
    with pytest.raises(ResponseTooLargeError):
        buffer.append(b"e")
    assert buffer.getvalue() == b"abcd"


def test_reset_keeps_capacity() -> None:
    buffer = ResponseBuffer()
    buffer.append(b"y" * (INITIAL_CAPACITY + 1))
    capacity = buffer.capacity
    buffer.reset()
    assert buffer.size == 0
    assert buffer.capacity == capacity
    assert buffer.text() == ""


def test_negative_cap_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        ResponseBuffer(max_size=-1)
