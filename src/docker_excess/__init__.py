"""Public surface for the docker-excess transport core."""

from .buffer import ResponseBuffer
from .client import DockerClient
from .config import Tcp, TlsMaterial, TransportConfig, UnixSocket, default_config
from .demux import FrameDemultiplexer, demux, iter_frames, pack_frame
from .errors import (
    ConflictError,
    ConnectionError,
    DockerExcessError,
    ErrorKind,
    HeaderTooLargeError,
    HttpError,
    InvalidArgumentError,
    MalformedResponseError,
    NotFoundError,
    OutOfMemoryError,
    PermissionDeniedError,
    RemoteError,
    ResponseTooLargeError,
    ServerError,
    TimeoutError,
    TransportIOError,
    TruncatedFrameError,
)
from .transport import HttpTransport, RawStreamTransport, StreamHandle
from .types import Channel, RequestOutcome, StreamFrame
from .version import __version__

__all__ = [
    "__version__",
    "Channel",
    "ConflictError",
    "ConnectionError",
    "DockerClient",
    "DockerExcessError",
    "ErrorKind",
    "FrameDemultiplexer",
    "HeaderTooLargeError",
    "HttpError",
    "HttpTransport",
    "InvalidArgumentError",
    "MalformedResponseError",
    "NotFoundError",
    "OutOfMemoryError",
    "PermissionDeniedError",
    "RawStreamTransport",
    "RemoteError",
    "RequestOutcome",
    "ResponseBuffer",
    "ResponseTooLargeError",
    "ServerError",
    "StreamFrame",
    "StreamHandle",
    "Tcp",
    "TimeoutError",
    "TlsMaterial",
    "TransportConfig",
    "TransportIOError",
    "TruncatedFrameError",
    "UnixSocket",
    "default_config",
    "demux",
    "iter_frames",
    "pack_frame",
]
