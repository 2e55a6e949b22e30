"""
Validation - Address format checks per chain.

Every validator returns None on success and raises InvalidAddressFormat
with a short reason otherwise.
"""

import re

import base58
from eth_utils import is_checksum_address
from eth_utils import to_checksum_address as _eth_to_checksum_address

from chains import Chain
from errors import InvalidAddressFormat, UnsupportedChain

from .addresses import (
    BTC_MAINNET_HRP,
    BTC_TESTNET_HRP,
    TON_BASECHAIN,
    TON_MASTERCHAIN,
    decode_segwit_address,
    decode_ton_friendly_address,
)


# ============================================
# Constants
# ============================================

_ETH_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")
_TON_RAW_RE = re.compile(r"(-?[0-9]+):([0-9a-fA-F]{64})")

# Base58Check version bytes: P2PKH / P2SH, mainnet and testnet
BTC_BASE58_VERSIONS = (0x00, 0x05, 0x6F, 0xC4)
BTC_BASE58_SIZE = 25

SOL_ADDRESS_SIZE = 32
TON_FRIENDLY_LENGTH = 48


# ============================================
# Ethereum
# ============================================

def validate_eth_address(address: str) -> None:
    """
    0x + 40 hex chars. All-lowercase and all-uppercase bodies are accepted
    as-is; mixed case must carry a valid EIP-55 checksum.
    """
    if not isinstance(address, str) or not address.startswith("0x"):
        raise InvalidAddressFormat("Ethereum address must start with 0x")
    if not _ETH_ADDRESS_RE.fullmatch(address):
        raise InvalidAddressFormat("Ethereum address must be 0x followed by 40 hex characters")

    body = address[2:]
    if body == body.lower() or body == body.upper():
        return
    if not is_checksum_address(address):
        raise InvalidAddressFormat("Ethereum address has an invalid EIP-55 checksum")


def to_checksum_address(address: str) -> str:
    """EIP-55 mixed-case form of an Ethereum address."""
    validate_eth_address(address)
    return _eth_to_checksum_address(address)


# ============================================
# Bitcoin
# ============================================

def _validate_btc_base58(address: str) -> None:
    try:
        payload = base58.b58decode_check(address)
    except ValueError as exc:
        raise InvalidAddressFormat(f"Invalid Base58Check Bitcoin address: {exc}") from exc
    # b58decode_check strips the 4-byte checksum
    if len(payload) + 4 != BTC_BASE58_SIZE:
        raise InvalidAddressFormat(f"Bitcoin address must decode to {BTC_BASE58_SIZE} bytes")
    if payload[0] not in BTC_BASE58_VERSIONS:
        raise InvalidAddressFormat(f"Unknown Bitcoin address version: 0x{payload[0]:02x}")


def validate_btc_address(address: str) -> None:
    """Legacy Base58Check (P2PKH/P2SH) or native SegWit (bc1 / tb1)."""
    if not isinstance(address, str) or not address:
        raise InvalidAddressFormat("Bitcoin address is empty")

    lowered = address.lower()
    for hrp in (BTC_MAINNET_HRP, BTC_TESTNET_HRP):
        if lowered.startswith(hrp + "1"):
            decode_segwit_address(hrp, address)
            return

    if address[0] in "123mn":
        _validate_btc_base58(address)
        return

    raise InvalidAddressFormat(f"Unrecognised Bitcoin address format: {address!r}")


# ============================================
# Solana
# ============================================

def validate_sol_address(address: str) -> None:
    """Base58 encoding of a 32-byte Ed25519 public key."""
    if not isinstance(address, str) or not address:
        raise InvalidAddressFormat("Solana address is empty")
    try:
        raw = base58.b58decode(address)
    except ValueError as exc:
        raise InvalidAddressFormat(f"Solana address is not valid Base58: {exc}") from exc
    if len(raw) != SOL_ADDRESS_SIZE:
        raise InvalidAddressFormat(f"Solana address must decode to {SOL_ADDRESS_SIZE} bytes, got {len(raw)}")


# ============================================
# TON
# ============================================

def validate_ton_address(address: str) -> None:
    """Raw "<workchain>:<64 hex>" or the 48-char friendly form."""
    if not isinstance(address, str) or not address.strip():
        raise InvalidAddressFormat("TON address is empty")
    address = address.strip()

    match = _TON_RAW_RE.fullmatch(address)
    if match:
        if int(match.group(1)) not in (TON_BASECHAIN, TON_MASTERCHAIN):
            raise InvalidAddressFormat(f"Unsupported TON workchain: {match.group(1)}")
        return

    if len(address) != TON_FRIENDLY_LENGTH:
        raise InvalidAddressFormat("TON address must be raw 'wc:hex' or 48-char friendly form")
    decode_ton_friendly_address(address)


# ============================================
# Dispatch
# ============================================

def validate_address(chain: "str | Chain", address: str) -> None:
    """Validate an address for the given chain."""
    chain = Chain.parse(chain)
    if chain is Chain.ETHEREUM:
        return validate_eth_address(address)
    if chain is Chain.BITCOIN:
        return validate_btc_address(address)
    if chain is Chain.SOLANA:
        return validate_sol_address(address)
    if chain is Chain.TON:
        return validate_ton_address(address)
    raise UnsupportedChain(f"No address validator for chain: {chain}")
