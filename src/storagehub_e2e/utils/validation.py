"""
Validation helpers for hex-encoded chain values.
"""

from __future__ import annotations

import re
from typing import Union
from urllib.parse import urlparse

from storagehub_e2e.errors import ConfigurationError

BYTES32_LENGTH = 32
BYTES32_HEX_LENGTH = 64

_HEX_RE = re.compile(r"^(0x)?[0-9a-fA-F]*$")


def to_bytes32(value: Union[str, bytes], field: str = "value") -> bytes:
    """
    Convert a 0x-prefixed hex string or raw bytes to exactly 32 bytes.

    Args:
        value: Hex string (with or without 0x) or bytes
        field: Field name for error messages

    Returns:
        32 raw bytes

    Raises:
        ValueError: If the value is not a 32-byte quantity
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != BYTES32_LENGTH:
            raise ValueError(f"{field} must be 32 bytes")
        return bytes(value)

    if isinstance(value, str):
        hex_str = value[2:] if value.startswith("0x") else value
        if len(hex_str) != BYTES32_HEX_LENGTH or not _HEX_RE.match(hex_str):
            raise ValueError(f"{field} must be a 32-byte hex string")
        return bytes.fromhex(hex_str)

    raise ValueError(f"{field} must be hex string or bytes32")


def to_hex(value: Union[str, bytes]) -> str:
    """Render bytes or hex as a lowercase 0x-prefixed string."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    hex_str = value[2:] if value.startswith("0x") else value
    if not _HEX_RE.match(hex_str):
        raise ValueError(f"not a hex string: {value!r}")
    return "0x" + hex_str.lower()


def same_hex(left: Union[str, bytes], right: Union[str, bytes]) -> bool:
    """Compare two hex quantities ignoring case and 0x prefix."""
    try:
        return to_hex(left) == to_hex(right)
    except ValueError:
        return False


def validate_endpoint_url(url: str, field: str, schemes: tuple = ("http", "https")) -> str:
    """
    Validate that a configured endpoint is an absolute URL with an allowed scheme.

    Raises:
        ConfigurationError: If the URL is empty or malformed
    """
    if not url or not isinstance(url, str):
        raise ConfigurationError(f"{field} must be a non-empty URL", setting=field)

    parsed = urlparse(url)
    if parsed.scheme not in schemes:
        raise ConfigurationError(
            f"{field} must use one of: {', '.join(schemes)}",
            setting=field,
        )
    if not parsed.hostname:
        raise ConfigurationError(f"{field} must have a valid hostname", setting=field)
    return url
