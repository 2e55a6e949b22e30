"""
Models package - Data models for the key core.

Contains:
- EvmTransactionRequest, BitcoinTransferRequest, SolanaTransferRequest,
  TonTransferRequest: per-chain signing inputs
- SignedTransaction: signer output
"""

from .transaction import (
    EvmTransactionRequest,
    BitcoinTransferRequest,
    SolanaTransferRequest,
    TonTransferRequest,
    TransferRequest,
    SignedTransaction,
)

__all__ = [
    "EvmTransactionRequest",
    "BitcoinTransferRequest",
    "SolanaTransferRequest",
    "TonTransferRequest",
    "TransferRequest",
    "SignedTransaction",
]
