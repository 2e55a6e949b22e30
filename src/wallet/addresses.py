"""
Addresses - Private key to public key and address, per chain.

- Ethereum: Keccak-256 of the uncompressed public key, last 20 bytes, lowercase 0x hex
- Bitcoin: P2WPKH, Bech32 (witness v0) of HASH160(compressed public key)
- Solana: Base58 of the Ed25519 public key
- TON: "<workchain>:<hex SHA-256(Ed25519 public key)>"

Addresses are not sensitive. Private key buffers are zeroed before return.
"""

import base64
import binascii
import hashlib

import base58
import bech32
import coincurve
from Crypto.Hash import RIPEMD160
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from eth_account import Account
from eth_keys.exceptions import ValidationError as EthKeysValidationError

from chains import Chain
from errors import InvalidAddressFormat, InvalidKeyEncoding, UnsupportedChain
from utils import private_key_buffer


# ============================================
# Constants
# ============================================

BTC_MAINNET_HRP = "bc"
BTC_TESTNET_HRP = "tb"
SEGWIT_V0 = 0

TON_BASECHAIN = 0
TON_MASTERCHAIN = -1

# Friendly address tag byte
TON_TAG_BOUNCEABLE = 0x11
TON_TAG_NON_BOUNCEABLE = 0x51
TON_TAG_TESTNET = 0x80
TON_FRIENDLY_SIZE = 36


# ============================================
# Hashing
# ============================================

def hash160(data: bytes) -> bytes:
    """RIPEMD-160(SHA-256(data))"""
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def crc16_xmodem(data: bytes) -> int:
    """CRC-16/XMODEM (poly 0x1021, init 0), as used by TON friendly addresses."""
    return binascii.crc_hqx(data, 0)


# ============================================
# Bech32 (SegWit)
# ============================================

def encode_segwit_address(hrp: str, witness_version: int, program: bytes) -> str:
    """Encode a witness program as a SegWit address."""
    address = bech32.encode(hrp, witness_version, list(program))
    if address is None:
        raise InvalidAddressFormat(
            f"Cannot encode witness v{witness_version} program of {len(program)} bytes"
        )
    return address


def decode_segwit_address(hrp: str, address: str) -> tuple[int, bytes]:
    """Decode a SegWit address into (witness version, program)."""
    witness_version, program = bech32.decode(hrp, address)
    if witness_version is None:
        raise InvalidAddressFormat(f"Not a valid '{hrp}' SegWit address: {address!r}")
    return witness_version, bytes(program)


# ============================================
# Public Keys
# ============================================

def _ed25519_public_key(key: bytearray) -> bytes:
    signing_key = Ed25519PrivateKey.from_private_bytes(bytes(key))
    return signing_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def _secp256k1_compressed_public_key(key: bytearray) -> bytes:
    try:
        return coincurve.PrivateKey(bytes(key)).public_key.format(compressed=True)
    except ValueError as exc:
        raise InvalidKeyEncoding(f"Invalid secp256k1 private key: {exc}") from exc


def get_ed25519_public_key(private_key_hex: str) -> str:
    """Hex-encoded 32-byte Ed25519 public key (Solana and TON)."""
    with private_key_buffer(private_key_hex) as key:
        return _ed25519_public_key(key).hex()


def get_secp256k1_public_key(private_key_hex: str, compressed: bool = True) -> str:
    """Hex-encoded secp256k1 public key (33 bytes compressed, 65 uncompressed)."""
    with private_key_buffer(private_key_hex) as key:
        try:
            public_key = coincurve.PrivateKey(bytes(key)).public_key
        except ValueError as exc:
            raise InvalidKeyEncoding(f"Invalid secp256k1 private key: {exc}") from exc
        return public_key.format(compressed=compressed).hex()


# ============================================
# Addresses
# ============================================

def get_eth_address(private_key_hex: str) -> str:
    """
    Ethereum address for a private key.

    Lowercase hex with 0x prefix; EIP-55 casing is opt-in via
    `wallet.validation.to_checksum_address`.
    """
    with private_key_buffer(private_key_hex) as key:
        try:
            account = Account.from_key(bytes(key))
        except (ValueError, EthKeysValidationError) as exc:
            raise InvalidKeyEncoding(f"Invalid private key: {exc}") from exc
        return account.address.lower()


def get_btc_address(private_key_hex: str, hrp: str = BTC_MAINNET_HRP) -> str:
    """Native SegWit (P2WPKH) address for a private key."""
    with private_key_buffer(private_key_hex) as key:
        public_key = _secp256k1_compressed_public_key(key)
    return encode_segwit_address(hrp, SEGWIT_V0, hash160(public_key))


def get_sol_address(private_key_hex: str) -> str:
    """Solana address: the Base58 Ed25519 public key."""
    with private_key_buffer(private_key_hex) as key:
        public_key = _ed25519_public_key(key)
    return base58.b58encode(public_key).decode("ascii")


def _ton_account_id(private_key_hex: str) -> bytes:
    with private_key_buffer(private_key_hex) as key:
        public_key = _ed25519_public_key(key)
    return hashlib.sha256(public_key).digest()


def get_ton_address(private_key_hex: str, workchain: int = TON_BASECHAIN) -> str:
    """TON raw address: "<workchain>:<hex account id>"."""
    return f"{workchain}:{_ton_account_id(private_key_hex).hex()}"


def get_ton_friendly_address(private_key_hex: str, bounceable: bool = True,
                             testnet: bool = False, workchain: int = TON_BASECHAIN) -> str:
    """
    TON user-friendly address for the same account id as `get_ton_address`.

    Layout: tag (1) | workchain (1) | account id (32) | CRC16-XMODEM (2),
    encoded as 48 chars of URL-safe Base64.
    """
    return encode_ton_friendly_address(
        workchain, _ton_account_id(private_key_hex), bounceable=bounceable, testnet=testnet
    )


def encode_ton_friendly_address(workchain: int, account_id: bytes, bounceable: bool = True,
                                testnet: bool = False) -> str:
    """Encode a workchain and account id in TON's friendly form."""
    if len(account_id) != 32:
        raise InvalidAddressFormat(f"TON account id must be 32 bytes, got {len(account_id)}")
    if workchain not in (TON_BASECHAIN, TON_MASTERCHAIN):
        raise InvalidAddressFormat(f"Unsupported TON workchain: {workchain}")

    tag = TON_TAG_BOUNCEABLE if bounceable else TON_TAG_NON_BOUNCEABLE
    if testnet:
        tag |= TON_TAG_TESTNET

    body = bytes([tag, workchain & 0xFF]) + account_id
    crc = crc16_xmodem(body)
    return base64.urlsafe_b64encode(body + crc.to_bytes(2, "big")).decode("ascii")


def decode_ton_friendly_address(address: str) -> dict:
    """
    Decode a TON friendly address.

    Returns {"workchain", "account_id", "bounceable", "testnet"}.
    """
    try:
        raw = base64.urlsafe_b64decode(address.replace("+", "-").replace("/", "_"))
    except (binascii.Error, ValueError) as exc:
        raise InvalidAddressFormat(f"TON address is not valid Base64: {address!r}") from exc

    if len(raw) != TON_FRIENDLY_SIZE:
        raise InvalidAddressFormat(f"TON address must decode to {TON_FRIENDLY_SIZE} bytes")

    body, checksum = raw[:34], raw[34:]
    if crc16_xmodem(body) != int.from_bytes(checksum, "big"):
        raise InvalidAddressFormat("TON address checksum mismatch")

    tag = body[0]
    testnet = bool(tag & TON_TAG_TESTNET)
    tag &= ~TON_TAG_TESTNET
    if tag not in (TON_TAG_BOUNCEABLE, TON_TAG_NON_BOUNCEABLE):
        raise InvalidAddressFormat(f"Unknown TON address tag: 0x{body[0]:02x}")

    workchain = body[1] - 256 if body[1] > 127 else body[1]
    return {
        "workchain": workchain,
        "account_id": body[2:],
        "bounceable": tag == TON_TAG_BOUNCEABLE,
        "testnet": testnet,
    }


def address_for(chain: "str | Chain", private_key_hex: str) -> str:
    """Address for a private key on the given chain."""
    chain = Chain.parse(chain)
    if chain is Chain.ETHEREUM:
        return get_eth_address(private_key_hex)
    if chain is Chain.BITCOIN:
        return get_btc_address(private_key_hex)
    if chain is Chain.SOLANA:
        return get_sol_address(private_key_hex)
    if chain is Chain.TON:
        return get_ton_address(private_key_hex)
    raise UnsupportedChain(f"No address format for chain: {chain}")
