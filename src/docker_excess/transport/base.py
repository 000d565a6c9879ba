"""Common transport abstractions."""

from __future__ import annotations

from typing import Literal, Mapping, Protocol, runtime_checkable

from ..buffer import ResponseBuffer

TransportKind = Literal["unix", "tcp", "tls"]


@runtime_checkable
class Transport(Protocol):
    """Performs one buffered HTTP exchange and returns the status code.

    Implementations fill ``buffer`` with the response body and raise a
    ``DockerExcessError`` subclass for transport-level failures.
    """

    Kind = TransportKind

    @property
    def kind(self) -> TransportKind: ...

    def perform(
        self,
        method: str,
        path: str,
        *,
        body: bytes | None,
        headers: Mapping[str, str],
        buffer: ResponseBuffer,
    ) -> int: ...

    def close(self) -> None: ...


__all__ = ["Transport", "TransportKind"]
