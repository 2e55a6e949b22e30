"""
Wallet Crypto - At-rest encryption of secrets.

- Argon2id key derivation (memory-hard)
- AES-256-GCM authenticated encryption

Nothing here touches disk. `encrypt_seed` returns a plain dict that the
caller stores however it likes; `decrypt_seed` takes it back.
"""

import logging
import secrets

from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from errors import InvalidKeyEncoding, KeystoreParseError, MacVerificationFailed, UnsupportedKdf
from utils import decode_hex, wipe

logger = logging.getLogger(__name__)


# ============================================
# Security Constants
# ============================================

# Argon2id parameters (OWASP recommendations for high-security)
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536  # 64 MB
ARGON2_PARALLELISM = 4
ARGON2_HASH_LEN = 32  # 256 bits for AES-256

SALT_SIZE = 16

# AES-GCM constants
AES_KEY_SIZE = 32
AES_IV_SIZE = 12  # 96 bits (recommended for GCM)
AES_TAG_SIZE = 16

KDF_NAME = "argon2id"


# ============================================
# Key Derivation
# ============================================

def derive_encryption_key(password: str, salt: bytes) -> bytes:
    """
    Derive an encryption key from password using Argon2id.

    Each password guess costs ~64MB RAM, which keeps brute force expensive.
    """
    if len(salt) < 8:
        raise InvalidKeyEncoding(f"Salt too short: {len(salt)} bytes")
    return hash_secret_raw(
        secret=password.encode('utf-8'),
        salt=salt,
        time_cost=ARGON2_TIME_COST,
        memory_cost=ARGON2_MEMORY_COST,
        parallelism=ARGON2_PARALLELISM,
        hash_len=ARGON2_HASH_LEN,
        type=Type.ID
    )


# ============================================
# Encryption
# ============================================

def encrypt_secret(key: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt with AES-256-GCM.

    Returns: nonce (12) || ciphertext || tag (16)
    """
    if len(key) != AES_KEY_SIZE:
        raise InvalidKeyEncoding(f"Encryption key must be {AES_KEY_SIZE} bytes, got {len(key)}")
    iv = secrets.token_bytes(AES_IV_SIZE)
    aesgcm = AESGCM(bytes(key))
    return iv + aesgcm.encrypt(iv, bytes(plaintext), None)


def decrypt_secret(key: bytes, data: bytes) -> bytes:
    """
    Decrypt the output of `encrypt_secret`.

    Raises: MacVerificationFailed if the key is wrong or data is tampered.
    """
    if len(key) != AES_KEY_SIZE:
        raise InvalidKeyEncoding(f"Encryption key must be {AES_KEY_SIZE} bytes, got {len(key)}")
    if len(data) < AES_IV_SIZE:
        raise InvalidKeyEncoding(f"Encrypted data too short: {len(data)} bytes")

    iv, ciphertext_and_tag = data[:AES_IV_SIZE], data[AES_IV_SIZE:]
    aesgcm = AESGCM(bytes(key))
    try:
        return aesgcm.decrypt(iv, ciphertext_and_tag, None)
    except InvalidTag as exc:
        logger.warning("Secret decryption failed authentication")
        raise MacVerificationFailed("Decryption failed: wrong password or corrupted data") from exc


def encrypt_seed(seed: bytes, password: str) -> dict:
    """
    Encrypt a seed with a password.

    Returns: {"kdf": "argon2id", "salt": hex, "ciphertext": hex}
    """
    salt = secrets.token_bytes(SALT_SIZE)
    key = bytearray(derive_encryption_key(password, salt))
    try:
        ciphertext = encrypt_secret(key, seed)
    finally:
        wipe(key)

    return {
        "kdf": KDF_NAME,
        "salt": salt.hex(),
        "ciphertext": ciphertext.hex(),
    }


def decrypt_seed(blob: dict, password: str) -> bytearray:
    """
    Decrypt a seed produced by `encrypt_seed`.

    Returns a buffer the caller must zero.
    """
    for field in ("kdf", "salt", "ciphertext"):
        if not isinstance(blob.get(field), str):
            raise KeystoreParseError(field, "missing")
    if blob["kdf"] != KDF_NAME:
        raise UnsupportedKdf(f"Unsupported KDF: {blob['kdf']}")

    salt = decode_hex(blob["salt"], "salt")
    ciphertext = decode_hex(blob["ciphertext"], "ciphertext")

    key = bytearray(derive_encryption_key(password, salt))
    try:
        return bytearray(decrypt_secret(key, ciphertext))
    finally:
        wipe(key)
