"""
Transaction models.

Per-chain transfer requests handed to the signers, and the signed result.

Amounts are decimal strings in the chain's smallest unit (wei, satoshi,
lamports, nanoton) so arbitrarily large values survive JSON round trips.
"""

from dataclasses import dataclass, asdict
from typing import Union


def _require_int(data: dict, name: str) -> int:
    value = data.get(name)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _require_str(data: dict, name: str) -> str:
    value = data.get(name)
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {value!r}")
    return value


@dataclass
class EvmTransactionRequest:
    """A legacy (EIP-155) EVM transaction."""
    to: str                 # 0x + 40 hex
    value: str              # Wei, decimal string
    nonce: int
    gas_price: int          # Wei
    gas_limit: int
    chain_id: int
    data: str = "0x"        # Call data, hex

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "EvmTransactionRequest":
        return cls(
            to=_require_str(data, "to"),
            value=_require_str(data, "value"),
            nonce=_require_int(data, "nonce"),
            gas_price=_require_int(data, "gas_price"),
            gas_limit=_require_int(data, "gas_limit"),
            chain_id=_require_int(data, "chain_id"),
            data=data.get("data") or "0x",
        )


@dataclass
class BitcoinTransferRequest:
    to: str
    value: str              # Satoshi, decimal string
    fee_rate: int           # sat/vB

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "BitcoinTransferRequest":
        return cls(
            to=_require_str(data, "to"),
            value=_require_str(data, "value"),
            fee_rate=_require_int(data, "fee_rate"),
        )


@dataclass
class SolanaTransferRequest:
    to: str                 # Base58
    value: str              # Lamports, decimal string
    recent_blockhash: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SolanaTransferRequest":
        return cls(
            to=_require_str(data, "to"),
            value=_require_str(data, "value"),
            recent_blockhash=_require_str(data, "recent_blockhash"),
        )


@dataclass
class TonTransferRequest:
    to: str
    value: str              # Nanoton, decimal string
    seqno: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TonTransferRequest":
        return cls(
            to=_require_str(data, "to"),
            value=_require_str(data, "value"),
            seqno=_require_int(data, "seqno"),
        )


TransferRequest = Union[
    EvmTransactionRequest,
    BitcoinTransferRequest,
    SolanaTransferRequest,
    TonTransferRequest,
]


@dataclass
class SignedTransaction:
    """
    Output of a signer.

    `payload` is the raw RLP hex for EVM chains (broadcast_ready=True).
    Bitcoin, Solana and TON return a signature envelope that still needs
    to be assembled into a real transaction (broadcast_ready=False).
    """
    chain: str
    payload: str
    broadcast_ready: bool

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return asdict(self)
