"""Pooled HTTP transport built on top of httpx."""

from __future__ import annotations

import time
from typing import Mapping

import httpx

from ..buffer import ResponseBuffer
from ..config import TransportConfig, UnixSocket
from ..errors import (
    ConnectionError,
    InvalidArgumentError,
    MalformedResponseError,
    TimeoutError,
    TransportIOError,
)
from ..logger import BoundLogger, create_logger
from ..tls import build_ssl_context
from .base import Transport


class HttpTransport:
    """Runs buffered requests over one reusable httpx client.

    The client is not safe for interleaved use; the owning ``DockerClient``
    serializes calls behind its lock.
    """

    def __init__(
        self,
        config: TransportConfig,
        *,
        client: httpx.Client | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.base_url
        self._client = client or _build_client(config)
        self._owns_client = client is None
        self._logger = (logger or create_logger()).child("http")

    @property
    def kind(self) -> Transport.Kind:
        return self._config.kind  # type: ignore[return-value]

    def perform(
        self,
        method: str,
        path: str,
        *,
        body: bytes | None,
        headers: Mapping[str, str],
        buffer: ResponseBuffer,
    ) -> int:
        request_headers = {
            "Host": "localhost",
            "User-Agent": self._config.user_agent,
        }
        if body is not None:
            request_headers["Content-Type"] = "application/json"
        request_headers.update(headers)

        url = f"{self._base_url}{path}"
        deadline = time.monotonic() + self._config.timeout
        try:
            self._logger.debug("HTTP %s %s bytes=%d", method, url, len(body or b""))
            with self._client.stream(method, url, content=body, headers=request_headers) as response:
                for chunk in response.iter_bytes():
                    buffer.append(chunk)
                    if time.monotonic() > deadline:
                        raise TimeoutError(
                            f"HTTP request exceeded {self._config.timeout}s total timeout"
                        )
                status = response.status_code
        except httpx.TimeoutException as exc:
            raise TimeoutError(f"HTTP request timeout after {self._config.timeout}s: {exc}") from exc
        except httpx.ConnectError as exc:
            raise ConnectionError(f"Cannot connect to {self._config.describe()}: {exc}") from exc
        except (httpx.UnsupportedProtocol, httpx.InvalidURL) as exc:
            raise InvalidArgumentError(f"Cannot build request for {url}: {exc}") from exc
        except httpx.DecodingError as exc:
            raise MalformedResponseError(f"Cannot decode response from {url}: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransportIOError(f"HTTP transfer failed for {url}: {exc}") from exc

        self._logger.debug(
            "HTTP <- %s status=%s bytes=%d",
            url,
            status,
            buffer.size,
        )
        return status

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def _build_client(config: TransportConfig) -> httpx.Client:
    timeout = httpx.Timeout(config.timeout, connect=config.connect_timeout)
    endpoint = config.endpoint
    if isinstance(endpoint, UnixSocket):
        transport = httpx.HTTPTransport(uds=endpoint.path, retries=0)
    else:
        verify = build_ssl_context(endpoint.tls) if endpoint.tls is not None else True
        transport = httpx.HTTPTransport(verify=verify, retries=0)
    return httpx.Client(transport=transport, timeout=timeout)


__all__ = ["HttpTransport"]
