"""
UpCloud API - JSON Codec

Encodes request bodies and decodes response bodies. Every decoding failure is
surfaced as ParseError so it cannot be mistaken for a provider rejection.
"""

import json
from typing import Any

from .exceptions import ParseError


def encode(value: Any) -> bytes:
    """Encode a structured value as UTF-8 JSON bytes."""
    return json.dumps(value, separators=(",", ":")).encode("utf-8")


def decode(body: bytes) -> Any:
    """Decode JSON bytes, returning None for an empty body.

    Raises:
        ParseError: If the body is not valid JSON
    """
    if not body or not body.strip():
        return None
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(
            f"Invalid JSON response from UpCloud API: {e!s}",
            context={"body_preview": body[:200].decode("utf-8", errors="replace")},
        ) from e


def unwrap(data: Any, *keys: str) -> Any:
    """Walk nested wrapper keys, e.g. unwrap(data, "servers", "server").

    Raises:
        ParseError: If any key along the path is missing
    """
    current = data
    for depth, key in enumerate(keys):
        if not isinstance(current, dict) or key not in current:
            raise ParseError(
                f"Expected key '{'.'.join(keys[: depth + 1])}' missing from response",
                context={"keys": list(keys)},
            )
        current = current[key]
    return current
