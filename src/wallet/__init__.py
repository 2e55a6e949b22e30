"""
Wallet package - Key derivation, addresses and key files.

Contains:
- KeyDeriver, DerivationPath: BIP-32 / SLIP-0010 derivation from a seed
- Address routines per chain (Ethereum, Bitcoin, Solana, TON)
- Keystore V3 decryption
- Argon2id + AES-GCM at-rest encryption of secrets
- Address validation
"""

from .derivation import (
    KeyDeriver,
    DerivationPath,
    PathComponent,
    slip10_derive,
    HARDENED_OFFSET,
)
from .addresses import (
    address_for,
    get_eth_address,
    get_btc_address,
    get_sol_address,
    get_ton_address,
    get_ton_friendly_address,
    get_ed25519_public_key,
    get_secp256k1_public_key,
    encode_segwit_address,
    decode_segwit_address,
    decode_ton_friendly_address,
)
from .keystore import (
    Keystore,
    CryptoParams,
    ScryptParams,
    Pbkdf2Params,
    parse_keystore,
    derive_key,
    verify_mac,
    decrypt,
    decrypt_keystore,
)
from .crypto import (
    derive_encryption_key,
    encrypt_secret,
    decrypt_secret,
    encrypt_seed,
    decrypt_seed,
)
from .validation import (
    validate_address,
    validate_eth_address,
    validate_btc_address,
    validate_sol_address,
    validate_ton_address,
    to_checksum_address,
)

__all__ = [
    # Derivation
    "KeyDeriver",
    "DerivationPath",
    "PathComponent",
    "slip10_derive",
    "HARDENED_OFFSET",
    # Addresses
    "address_for",
    "get_eth_address",
    "get_btc_address",
    "get_sol_address",
    "get_ton_address",
    "get_ton_friendly_address",
    "get_ed25519_public_key",
    "get_secp256k1_public_key",
    "encode_segwit_address",
    "decode_segwit_address",
    "decode_ton_friendly_address",
    # Keystore
    "Keystore",
    "CryptoParams",
    "ScryptParams",
    "Pbkdf2Params",
    "parse_keystore",
    "derive_key",
    "verify_mac",
    "decrypt",
    "decrypt_keystore",
    # At-rest encryption
    "derive_encryption_key",
    "encrypt_secret",
    "decrypt_secret",
    "encrypt_seed",
    "decrypt_seed",
    # Validation
    "validate_address",
    "validate_eth_address",
    "validate_btc_address",
    "validate_sol_address",
    "validate_ton_address",
    "to_checksum_address",
]
