"""Append-only response buffer with doubling growth and an optional size cap."""

from __future__ import annotations

from .errors import InvalidArgumentError, OutOfMemoryError, ResponseTooLargeError

INITIAL_CAPACITY = 8192


class ResponseBuffer:
    """Binary-safe accumulator for one in-flight response.

    ``capacity`` doubles from ``INITIAL_CAPACITY`` until the pending append
    fits, so a session of appends totalling ``S`` bytes grows ``O(log S)``
    times. The buffer is reset, not reallocated, between requests.
    """

    def __init__(self, max_size: int = 0) -> None:
        if max_size < 0:
            raise InvalidArgumentError("max_size must be >= 0")
        self.max_size = max_size
        self._data = bytearray()
        self._capacity = 0
        self.growths = 0

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, chunk: bytes) -> None:
        """Append ``chunk``; raise ResponseTooLargeError once the cap is hit.

        On overflow the accepted prefix fills the buffer exactly to the cap.
        """
        if not chunk:
            return
        needed = len(chunk)
        overflow = False
        if self.max_size and self.size + needed > self.max_size:
            needed = self.max_size - self.size
            overflow = True

        if needed:
            self._reserve(self.size + needed)
            try:
                self._data += chunk[:needed] if overflow else chunk
            except MemoryError as exc:
                raise OutOfMemoryError(
                    f"Cannot grow response buffer to {self._capacity} bytes"
                ) from exc

        if overflow:
            raise ResponseTooLargeError(
                f"Response exceeds the {self.max_size} byte limit",
                limit=self.max_size,
            )

    def reset(self) -> None:
        """Truncate to empty, keeping the grown capacity for the next request."""
        del self._data[:]

    def getvalue(self) -> bytes:
        return bytes(self._data)

    def text(self, encoding: str = "utf-8") -> str:
        return self._data.decode(encoding, errors="replace")

    def _reserve(self, required: int) -> None:
        if required <= self._capacity:
            return
        capacity = self._capacity or INITIAL_CAPACITY
        while capacity < required:
            capacity *= 2
        # bytearray owns the real allocation; capacity is the logical growth schedule.
        self._capacity = capacity
        self.growths += 1

    def __len__(self) -> int:
        return self.size

    def __bytes__(self) -> bytes:
        return self.getvalue()


__all__ = ["INITIAL_CAPACITY", "ResponseBuffer"]
