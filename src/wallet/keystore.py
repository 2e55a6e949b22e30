"""
Keystore - Decrypt Web3 Secret Storage (Keystore V3) documents.

Pipeline (each step fails with its own typed error, nothing is retried):

    parse -> derive key (scrypt | pbkdf2) -> verify MAC -> decrypt (aes-128-ctr)

The MAC is Keccak-256(derived_key[16:32] || ciphertext). A mismatch is how
a wrong password shows up; there is no separate password check.

Keystore KDF parameters come from the document, i.e. from untrusted input,
so they are bounded before any work is done.
"""

import hmac
import json
import logging
from dataclasses import dataclass
from functools import partial
from typing import Optional, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from Crypto.Protocol.KDF import scrypt
from eth_utils import keccak

from errors import (
    InvalidKeyEncoding,
    KeystoreParseError,
    MacVerificationFailed,
    UnsupportedCipher,
    UnsupportedKdf,
)
from utils import PRIVATE_KEY_SIZE, decode_hex, strip_hex_prefix, wipe

logger = logging.getLogger(__name__)


# ============================================
# Limits
# ============================================

KEYSTORE_VERSION = 3

SUPPORTED_CIPHERS = ("aes-128-ctr",)
SUPPORTED_PRFS = ("hmac-sha256",)

MAX_SCRYPT_N = 2 ** 20
MAX_SCRYPT_R = 32
MAX_SCRYPT_P = 16
# scrypt needs 128 * r * n bytes of working memory
MAX_SCRYPT_MEMORY = 2 ** 30
MAX_PBKDF2_ITERATIONS = 10_000_000
MIN_DKLEN = 32
MAX_DKLEN = 64

AES_BLOCK_SIZE = 16
MIN_MAC_SIZE = 16
MAX_MAC_SIZE = 32


# ============================================
# Data Classes
# ============================================

@dataclass
class ScryptParams:
    dklen: int
    n: int
    p: int
    r: int
    salt: bytes


@dataclass
class Pbkdf2Params:
    c: int
    dklen: int
    prf: str
    salt: bytes


KdfParams = Union[ScryptParams, Pbkdf2Params]


@dataclass
class CryptoParams:
    """The `crypto` section of a keystore."""
    cipher: str
    iv: bytes
    ciphertext: bytes
    kdf: str
    kdfparams: KdfParams
    mac: bytes


@dataclass
class Keystore:
    """A parsed Keystore V3 document."""
    version: int
    id: str
    address: str        # Lowercase hex without 0x, "" when absent
    crypto: CryptoParams


# ============================================
# Parsing
# ============================================

def _get(obj: dict, name: str, kind: type, field: Optional[str] = None):
    field = field or name
    value = obj.get(name)
    if value is None:
        raise KeystoreParseError(field, "missing")
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise KeystoreParseError(field, "expected an integer")
        if value <= 0:
            raise KeystoreParseError(field, "must be positive")
    elif not isinstance(value, kind):
        raise KeystoreParseError(field, f"expected {kind.__name__}")
    return value


def _get_hex(obj: dict, name: str) -> bytes:
    value = _get(obj, name, str)
    try:
        return decode_hex(value, name)
    except InvalidKeyEncoding as exc:
        raise KeystoreParseError(name, "not valid hex") from exc


def _parse_kdfparams(kdf: str, params: dict) -> KdfParams:
    if kdf == "scrypt":
        return ScryptParams(
            dklen=_get(params, "dklen", int),
            n=_get(params, "n", int),
            p=_get(params, "p", int),
            r=_get(params, "r", int),
            salt=_get_hex(params, "salt"),
        )
    if kdf == "pbkdf2":
        prf = params.get("prf", "hmac-sha256")
        if not isinstance(prf, str):
            raise KeystoreParseError("prf", "expected str")
        return Pbkdf2Params(
            c=_get(params, "c", int),
            dklen=_get(params, "dklen", int),
            prf=prf,
            salt=_get_hex(params, "salt"),
        )
    raise UnsupportedKdf(f"Unsupported KDF: {kdf}")


def parse_keystore(document: Union[str, bytes, dict]) -> Keystore:
    """
    Parse a Keystore V3 JSON document.

    Missing or malformed fields raise KeystoreParseError naming the field.
    An unknown KDF raises UnsupportedKdf.
    """
    if isinstance(document, dict):
        data = document
    else:
        try:
            data = json.loads(document)
        except (TypeError, ValueError) as exc:
            raise KeystoreParseError("json", f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise KeystoreParseError("json", "expected an object")

    version = _get(data, "version", int)
    if version != KEYSTORE_VERSION:
        raise KeystoreParseError("version", f"unsupported version {version}")
    keystore_id = _get(data, "id", str)

    address = data.get("address") or ""
    if not isinstance(address, str):
        raise KeystoreParseError("address", "expected str")

    # Some writers capitalise the section name
    crypto = data.get("crypto", data.get("Crypto"))
    if crypto is None:
        raise KeystoreParseError("crypto", "missing")
    if not isinstance(crypto, dict):
        raise KeystoreParseError("crypto", "expected an object")

    cipher = _get(crypto, "cipher", str)
    cipherparams = _get(crypto, "cipherparams", dict)
    iv = _get_hex(cipherparams, "iv")
    if len(iv) != AES_BLOCK_SIZE:
        raise KeystoreParseError("iv", f"expected {AES_BLOCK_SIZE} bytes, got {len(iv)}")
    ciphertext = _get_hex(crypto, "ciphertext")
    kdf = _get(crypto, "kdf", str)
    kdfparams = _parse_kdfparams(kdf, _get(crypto, "kdfparams", dict))
    mac = _get_hex(crypto, "mac")
    if not MIN_MAC_SIZE <= len(mac) <= MAX_MAC_SIZE:
        raise KeystoreParseError("mac", f"expected {MIN_MAC_SIZE}-{MAX_MAC_SIZE} bytes, got {len(mac)}")

    return Keystore(
        version=version,
        id=keystore_id,
        address=strip_hex_prefix(address).lower(),
        crypto=CryptoParams(
            cipher=cipher,
            iv=iv,
            ciphertext=ciphertext,
            kdf=kdf,
            kdfparams=kdfparams,
            mac=mac,
        ),
    )


# ============================================
# Key Derivation
# ============================================

def _check_dklen(dklen: int) -> None:
    if not MIN_DKLEN <= dklen <= MAX_DKLEN:
        raise UnsupportedKdf(f"Unsupported dklen {dklen}; expected {MIN_DKLEN}-{MAX_DKLEN}")


def derive_key(password: str, kdfparams: KdfParams) -> bytearray:
    """
    Derive the keystore's symmetric key from a password.

    Returns a dklen-byte buffer the caller must zero.
    """
    password_bytes = bytearray(password.encode("utf-8"))
    try:
        if isinstance(kdfparams, ScryptParams):
            _check_dklen(kdfparams.dklen)
            n, r, p = kdfparams.n, kdfparams.r, kdfparams.p
            if n < 2 or n & (n - 1) or n > MAX_SCRYPT_N:
                raise UnsupportedKdf(f"Unsupported scrypt n={n}")
            if r > MAX_SCRYPT_R or p > MAX_SCRYPT_P:
                raise UnsupportedKdf(f"Unsupported scrypt r={r}, p={p}")
            if 128 * r * n > MAX_SCRYPT_MEMORY:
                raise UnsupportedKdf(f"scrypt n={n}, r={r} needs more than {MAX_SCRYPT_MEMORY} bytes")
            derive = partial(scrypt, salt=kdfparams.salt, key_len=kdfparams.dklen, N=n, r=r, p=p)
        elif isinstance(kdfparams, Pbkdf2Params):
            _check_dklen(kdfparams.dklen)
            if kdfparams.prf not in SUPPORTED_PRFS:
                raise UnsupportedKdf(f"Unsupported PRF: {kdfparams.prf}")
            if kdfparams.c > MAX_PBKDF2_ITERATIONS:
                raise UnsupportedKdf(f"Unsupported PBKDF2 iteration count: {kdfparams.c}")
            derive = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=kdfparams.dklen,
                salt=kdfparams.salt,
                iterations=kdfparams.c,
            ).derive
        else:
            raise UnsupportedKdf(f"Unsupported KDF parameters: {type(kdfparams).__name__}")

        try:
            return bytearray(derive(bytes(password_bytes)))
        except ValueError as exc:
            raise UnsupportedKdf(f"KDF rejected parameters: {exc}") from exc
    finally:
        wipe(password_bytes)


# ============================================
# MAC + Decryption
# ============================================

def compute_mac(derived_key: bytearray, ciphertext: bytes) -> bytes:
    """Keccak-256(derived_key[16:32] || ciphertext)"""
    mac_input = bytearray(derived_key[16:32]) + ciphertext
    try:
        return keccak(bytes(mac_input))
    finally:
        wipe(mac_input)


def verify_mac(derived_key: bytearray, ciphertext: bytes, expected_mac: bytes) -> None:
    """
    Check the stored MAC against the computed one.

    The stored MAC may be truncated (at least 16 bytes); it is compared
    against the same-length prefix of the computed MAC in constant time.
    """
    if not MIN_MAC_SIZE <= len(expected_mac) <= MAX_MAC_SIZE:
        raise KeystoreParseError("mac", f"expected {MIN_MAC_SIZE}-{MAX_MAC_SIZE} bytes")
    computed = compute_mac(derived_key, ciphertext)
    if not hmac.compare_digest(computed[:len(expected_mac)], expected_mac):
        logger.warning("Keystore MAC verification failed")
        raise MacVerificationFailed("MAC verification failed")


def check_cipher(cipher: str) -> None:
    """Reject ciphers other than aes-128-ctr (aes-128-cbc included)."""
    if cipher not in SUPPORTED_CIPHERS:
        logger.warning("Rejected keystore cipher %s", cipher)
        raise UnsupportedCipher(f"Unsupported cipher: {cipher}")


def decrypt(derived_key: bytearray, iv: bytes, ciphertext: bytes, cipher: str) -> bytearray:
    """
    Decrypt the ciphertext with derived_key[0:16].

    Returns a buffer the caller must zero.
    """
    check_cipher(cipher)
    if len(iv) != AES_BLOCK_SIZE:
        raise KeystoreParseError("iv", f"expected {AES_BLOCK_SIZE} bytes, got {len(iv)}")

    key = bytearray(derived_key[:16])
    try:
        decryptor = Cipher(algorithms.AES(bytes(key)), modes.CTR(iv)).decryptor()
        return bytearray(decryptor.update(ciphertext) + decryptor.finalize())
    finally:
        wipe(key)


def decrypt_keystore(document: Union[str, bytes, dict], password: str) -> str:
    """
    Decrypt a keystore document with its password.

    Returns:
        The private key as 0x-prefixed hex.

    Raises:
        KeystoreParseError, UnsupportedKdf, UnsupportedCipher,
        MacVerificationFailed (wrong password or tampered file),
        InvalidKeyEncoding (plaintext is not a 32-byte key).
    """
    keystore = parse_keystore(document)
    crypto = keystore.crypto

    # Fail before spending time in the KDF
    check_cipher(crypto.cipher)
    logger.debug("Decrypting keystore %s (kdf=%s, cipher=%s)", keystore.id, crypto.kdf, crypto.cipher)

    derived_key = None
    plaintext = None
    try:
        derived_key = derive_key(password, crypto.kdfparams)
        verify_mac(derived_key, crypto.ciphertext, crypto.mac)
        plaintext = decrypt(derived_key, crypto.iv, crypto.ciphertext, crypto.cipher)
        if len(plaintext) != PRIVATE_KEY_SIZE:
            raise InvalidKeyEncoding(
                f"Decrypted key must be {PRIVATE_KEY_SIZE} bytes, got {len(plaintext)}"
            )
        return "0x" + plaintext.hex()
    finally:
        wipe(derived_key)
        wipe(plaintext)
