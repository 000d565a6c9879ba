"""Transport implementations exposed to users."""

from .base import Transport, TransportKind
from .http import HttpTransport
from .stream import RawStreamTransport, StreamHandle

__all__ = [
    "HttpTransport",
    "RawStreamTransport",
    "StreamHandle",
    "Transport",
    "TransportKind",
]
