"""
Services package - Signing and logging services for the key core.

Contains:
- EthereumTxSigner, BitcoinTxSigner, SolanaTxSigner, TonTxSigner: per-chain signers
- sign_transaction: chain dispatcher over the request models
- sign_eth_message, sign_ed25519_message: message signing
- configure_logging: console logging setup for host applications
"""

from .logging import configure_logging
from .signing import (
    EthereumTxSigner,
    BitcoinTxSigner,
    SolanaTxSigner,
    TonTxSigner,
    sign_transaction,
    sign_eth_message,
    sign_ed25519_message,
    parse_amount,
)

__all__ = [
    "configure_logging",
    "EthereumTxSigner",
    "BitcoinTxSigner",
    "SolanaTxSigner",
    "TonTxSigner",
    "sign_transaction",
    "sign_eth_message",
    "sign_ed25519_message",
    "parse_amount",
]
