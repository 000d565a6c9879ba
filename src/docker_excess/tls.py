"""SSL context construction shared by the pooled and streaming transports."""

from __future__ import annotations

import ssl

from .config import TlsMaterial
from .errors import InvalidArgumentError


def build_ssl_context(material: TlsMaterial) -> ssl.SSLContext:
    if bool(material.client_cert) != bool(material.client_key):
        raise InvalidArgumentError("Client certificate and key must be supplied together")

    try:
        context = ssl.create_default_context(cafile=material.ca_cert)
        if not material.verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        if material.client_cert and material.client_key:
            context.load_cert_chain(material.client_cert, material.client_key)
    except (OSError, ssl.SSLError) as exc:
        raise InvalidArgumentError(f"Cannot load TLS material: {exc}", context=material) from exc
    return context


__all__ = ["build_ssl_context"]
