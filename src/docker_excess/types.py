"""Shared typing helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable

from .errors import DockerExcessError
from .parser import parse_json


class Channel(IntEnum):
    STDIN = 0
    STDOUT = 1
    STDERR = 2


@dataclass(frozen=True)
class StreamFrame:
    channel: Channel
    payload: bytes


Sink = Callable[[Channel, bytes], None]


@dataclass
class RequestOutcome:
    """Result of one HTTP exchange.

    ``status`` is None when the exchange failed at the transport level; the
    body is empty unless the exchange completed.
    """

    status: int | None
    error: DockerExcessError | None = None
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def json(self) -> Any:
        self.raise_for_error()
        return parse_json(self.body)


__all__ = ["Channel", "RequestOutcome", "Sink", "StreamFrame"]
