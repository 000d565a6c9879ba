"""JSON body helpers shared by the executor and the stream transport."""

from __future__ import annotations

import json
from typing import Any

from .errors import InvalidArgumentError, MalformedResponseError

JsonBody = bytes | str | dict[str, Any] | list[Any]


def extract_error_message(body: str | None) -> str:
    if not body:
        return "Error occurred"
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return body.strip() or "Error occurred"

    if isinstance(parsed, dict) and "message" in parsed:
        message = parsed["message"]
        if isinstance(message, str):
            return message
        return str(message)
    return body.strip() or "Error occurred"


def parse_json(body: bytes) -> Any:
    """Decode a response body that is expected to carry JSON."""
    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        raise MalformedResponseError("Expected a JSON body but the response was empty")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Invalid JSON response: {exc}", context=text[:200]) from exc


def encode_body(body: JsonBody | None) -> bytes | None:
    """Normalize a request body to raw bytes.

    Dicts and lists are serialized with ``json.dumps``; strings are UTF-8
    encoded; bytes pass through untouched.
    """
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (dict, list)):
        return json.dumps(body, separators=(",", ":")).encode("utf-8")
    raise InvalidArgumentError(f"Unsupported request body type: {type(body).__name__}")


__all__ = ["JsonBody", "encode_body", "extract_error_message", "parse_json"]
