"""
Errors - Typed failures raised by the key core.

Every error derives from KeyCoreError, which is a ValueError, so callers
that already guard wallet calls with `except ValueError` keep working.

Messages are technical. Translating them for users (e.g. "MAC verification
failed" -> "incorrect password") is left to the caller.
"""

from typing import Optional


class KeyCoreError(ValueError):
    """Base class for all key core errors."""


class InvalidKeyEncoding(KeyCoreError):
    """Seed or private key is not valid hex, has the wrong length, or is off-curve."""


class InvalidDerivationPath(KeyCoreError):
    """Derivation path syntax is invalid or not allowed for the curve."""


class UnsupportedKdf(KeyCoreError):
    """Keystore KDF (or its parameters) is not supported."""


class UnsupportedCipher(KeyCoreError):
    """Keystore cipher is not supported."""


class KeystoreParseError(KeyCoreError):
    """A keystore field is missing or malformed."""

    def __init__(self, field: str, reason: Optional[str] = None):
        self.field = field
        self.reason = reason or "missing or malformed"
        super().__init__(f"Keystore field '{field}': {self.reason}")


class MacVerificationFailed(KeyCoreError):
    """Computed MAC does not match the stored MAC (wrong password or tampering)."""


class InvalidAmountFormat(KeyCoreError):
    """Amount is not a non-negative integer in the chain's base unit."""


class InvalidAddressFormat(KeyCoreError):
    """Address does not decode for the chain."""


class InvalidDataEncoding(KeyCoreError):
    """Transaction data payload is not valid hex."""


class SignatureFailure(KeyCoreError):
    """The signing backend rejected the key or message."""


class UnsupportedChain(KeyCoreError):
    """Chain name or EVM chain id is not supported."""


__all__ = [
    "KeyCoreError",
    "InvalidKeyEncoding",
    "InvalidDerivationPath",
    "UnsupportedKdf",
    "UnsupportedCipher",
    "KeystoreParseError",
    "MacVerificationFailed",
    "InvalidAmountFormat",
    "InvalidAddressFormat",
    "InvalidDataEncoding",
    "SignatureFailure",
    "UnsupportedChain",
]
