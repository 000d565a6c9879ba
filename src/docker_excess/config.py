"""Transport configuration: where the daemon lives and how long to wait for it."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Union
from urllib.parse import urlparse

from .errors import InvalidArgumentError
from .version import __version__

DEFAULT_SOCKET = "/var/run/docker.sock"
DEFAULT_API_VERSION = "1.41"
DEFAULT_TIMEOUT = 30.0
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_HEADER_LIMIT = 8192
DEFAULT_TCP_PORT = 2375
DEFAULT_TLS_PORT = 2376


@dataclass(frozen=True)
class TlsMaterial:
    ca_cert: str | None = None
    client_cert: str | None = None
    client_key: str | None = None
    verify: bool = True

    @classmethod
    def from_cert_path(cls, cert_path: str, *, verify: bool = True) -> "TlsMaterial":
        """Use the ``ca.pem``/``cert.pem``/``key.pem`` layout of DOCKER_CERT_PATH."""
        base = Path(cert_path)

        def _existing(name: str) -> str | None:
            candidate = base / name
            return str(candidate) if candidate.exists() else None

        return cls(
            ca_cert=_existing("ca.pem"),
            client_cert=_existing("cert.pem"),
            client_key=_existing("key.pem"),
            verify=verify,
        )


@dataclass(frozen=True)
class UnixSocket:
    path: str = DEFAULT_SOCKET


@dataclass(frozen=True)
class Tcp:
    host: str
    port: int = DEFAULT_TCP_PORT
    tls: TlsMaterial | None = None


Endpoint = Union[UnixSocket, Tcp]


@dataclass(frozen=True)
class TransportConfig:
    endpoint: Endpoint = field(default_factory=UnixSocket)
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    timeout: float = DEFAULT_TIMEOUT
    max_response_size: int = 0
    max_frame_size: int = 0
    user_agent: str = f"docker-excess/{__version__}"
    api_version: str = DEFAULT_API_VERSION
    header_limit: int = DEFAULT_HEADER_LIMIT
    debug: bool = False

    def __post_init__(self) -> None:
        endpoint = self.endpoint
        if isinstance(endpoint, UnixSocket):
            if not endpoint.path:
                raise InvalidArgumentError("Unix socket path must not be empty")
        elif isinstance(endpoint, Tcp):
            if not endpoint.host:
                raise InvalidArgumentError("TCP host must not be empty")
            if not 0 < endpoint.port < 65536:
                raise InvalidArgumentError(f"TCP port out of range: {endpoint.port}")
        else:
            raise InvalidArgumentError(f"Unsupported endpoint: {endpoint!r}")

        if self.connect_timeout <= 0 or self.timeout <= 0:
            raise InvalidArgumentError("Timeouts must be positive")
        if self.max_response_size < 0:
            raise InvalidArgumentError("max_response_size must be >= 0 (0 = unbounded)")
        if self.max_frame_size < 0:
            raise InvalidArgumentError("max_frame_size must be >= 0 (0 = unbounded)")
        if self.header_limit <= 0:
            raise InvalidArgumentError("header_limit must be positive")

    @property
    def kind(self) -> str:
        if isinstance(self.endpoint, UnixSocket):
            return "unix"
        return "tls" if self.endpoint.tls is not None else "tcp"

    @property
    def tls(self) -> TlsMaterial | None:
        if isinstance(self.endpoint, Tcp):
            return self.endpoint.tls
        return None

    @property
    def base_url(self) -> str:
        """Scheme and authority for requests; Unix sockets route via ``localhost``."""
        endpoint = self.endpoint
        if isinstance(endpoint, UnixSocket):
            return "http://localhost"
        scheme = "https" if endpoint.tls is not None else "http"
        return f"{scheme}://{endpoint.host}:{endpoint.port}"

    def describe(self) -> str:
        endpoint = self.endpoint
        if isinstance(endpoint, UnixSocket):
            return f"unix://{endpoint.path}"
        return f"{self.kind}://{endpoint.host}:{endpoint.port}"

    def versioned_path(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"/v{self.api_version}{path}"

    @classmethod
    def from_url(cls, url: str, **overrides: Any) -> "TransportConfig":
        tls: TlsMaterial | None = overrides.pop("tls", None)
        return cls(endpoint=_parse_endpoint(url, tls), **overrides)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "TransportConfig":
        """Build a config from DOCKER_HOST, DOCKER_TLS_VERIFY, DOCKER_CERT_PATH, DOCKER_API_VERSION."""
        env = os.environ if environ is None else environ
        host = env.get("DOCKER_HOST") or f"unix://{DEFAULT_SOCKET}"
        tls_verify = env.get("DOCKER_TLS_VERIFY", "") not in {"", "0"}
        cert_path = env.get("DOCKER_CERT_PATH")

        tls: TlsMaterial | None = None
        if cert_path:
            tls = TlsMaterial.from_cert_path(cert_path, verify=tls_verify)
        elif tls_verify:
            tls = TlsMaterial(verify=True)

        endpoint = _parse_endpoint(host, tls)
        if env.get("DOCKER_API_VERSION"):
            overrides.setdefault("api_version", env["DOCKER_API_VERSION"])
        return cls(endpoint=endpoint, **overrides)


def default_config() -> TransportConfig:
    return TransportConfig()


def _parse_endpoint(url: str, tls: TlsMaterial | None) -> Endpoint:
    if url.startswith("/"):
        return UnixSocket(url)

    parsed = urlparse(url)
    scheme = parsed.scheme or "tcp"

    if scheme == "unix":
        path = parsed.path or parsed.netloc
        return UnixSocket(path)

    host = parsed.hostname
    if not host:
        raise InvalidArgumentError(f"Missing host in {url!r}")

    if scheme in {"tcp", "http"}:
        if tls is not None:
            return Tcp(host, parsed.port or DEFAULT_TLS_PORT, tls)
        return Tcp(host, parsed.port or DEFAULT_TCP_PORT)

    if scheme in {"https", "tls"}:
        return Tcp(host, parsed.port or DEFAULT_TLS_PORT, tls or TlsMaterial())

    raise InvalidArgumentError(f"Unsupported scheme: {scheme}")


__all__ = [
    "DEFAULT_API_VERSION",
    "DEFAULT_SOCKET",
    "Endpoint",
    "Tcp",
    "TlsMaterial",
    "TransportConfig",
    "UnixSocket",
    "default_config",
]
