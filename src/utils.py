"""
Shared utility functions for the key core.

Contains hex helpers and the secret buffer handling used across packages.

Secrets (seeds, private keys, derived symmetric keys) are held in
`bytearray` objects so they can be zero-filled in place once the scope
that needs them exits. Python may still have made internal copies
(immutable `bytes` handed to a crypto backend, `str` hex forms), so this
narrows the exposure window rather than closing it.
"""

import re
from contextlib import contextmanager
from typing import Iterator, Optional

from errors import InvalidKeyEncoding


PRIVATE_KEY_SIZE = 32

_HEX_RE = re.compile(r"[0-9a-fA-F]*")


def strip_hex_prefix(value: str) -> str:
    """Remove a leading 0x / 0X."""
    if value.startswith("0x") or value.startswith("0X"):
        return value[2:]
    return value


def add_hex_prefix(value: str) -> str:
    """Ensure a leading 0x."""
    return value if value.startswith("0x") else f"0x{value}"


def is_hex(value: str) -> bool:
    """True if value (without 0x) is an even-length hex string."""
    if not isinstance(value, str):
        return False
    body = strip_hex_prefix(value)
    return len(body) % 2 == 0 and bool(_HEX_RE.fullmatch(body))


def decode_hex(value: str, what: str = "value", error=InvalidKeyEncoding) -> bytes:
    """
    Decode a hex string, with or without 0x.

    Raises `error` (InvalidKeyEncoding by default) naming `what` on failure.
    """
    if not isinstance(value, str):
        raise error(f"Invalid {what}: expected hex string, got {type(value).__name__}")
    body = strip_hex_prefix(value.strip())
    if len(body) % 2 != 0 or not _HEX_RE.fullmatch(body):
        raise error(f"Invalid {what}: not valid hex")
    return bytes.fromhex(body)


def decode_private_key(private_key_hex: str) -> bytearray:
    """
    Decode a 32-byte private key hex string into a wipeable buffer.

    The caller owns the returned buffer and must zero it (see `wipe`).
    """
    raw = bytearray(decode_hex(private_key_hex, "private key"))
    if len(raw) != PRIVATE_KEY_SIZE:
        length = len(raw)
        wipe(raw)
        raise InvalidKeyEncoding(
            f"Invalid private key length: expected {PRIVATE_KEY_SIZE} bytes, got {length}"
        )
    return raw


def wipe(buf: Optional[bytearray]) -> None:
    """
    Zero-fill a bytearray in-place.

    Accepts None so it can be called unconditionally from `finally` blocks.
    """
    if buf is None:
        return
    for i in range(len(buf)):
        buf[i] = 0


@contextmanager
def private_key_buffer(private_key_hex: str) -> Iterator[bytearray]:
    """
    Decode a private key for the duration of a `with` block.

    The buffer is zeroed on exit, whether the block returns or raises.

    Example:
        with private_key_buffer(key_hex) as key:
            signature = sign(bytes(key), digest)
    """
    key = decode_private_key(private_key_hex)
    try:
        yield key
    finally:
        wipe(key)
