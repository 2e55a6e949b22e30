"""
Signing Service - Per-chain transaction and message signing.

- Ethereum / EVM: legacy EIP-155 transaction, RLP-encoded, broadcast-ready
- Bitcoin: signed JSON envelope (no UTXO inputs are modeled)
- Solana / TON: Ed25519 signature over a compact transfer descriptor

Every signer takes the private key as hex, decodes it into a buffer that
is zeroed as soon as the signature exists, and is deterministic: the same
key and parameters always give byte-identical output.
"""

import base64
import hashlib
import json
import logging
import re

import base58
import coincurve
import rlp
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys
from eth_keys.exceptions import ValidationError as EthKeysValidationError
from eth_utils import keccak

from chains import Chain, network_label, validate_chain_id
from errors import (
    InvalidAddressFormat,
    InvalidAmountFormat,
    InvalidDataEncoding,
    InvalidKeyEncoding,
    SignatureFailure,
    UnsupportedChain,
)
from models import (
    BitcoinTransferRequest,
    EvmTransactionRequest,
    SignedTransaction,
    SolanaTransferRequest,
    TonTransferRequest,
    TransferRequest,
)
from utils import add_hex_prefix, decode_hex, private_key_buffer
from wallet.validation import validate_btc_address, validate_sol_address, validate_ton_address

logger = logging.getLogger(__name__)


# ============================================
# Limits
# ============================================

UINT256_LIMIT = 2 ** 256
UINT64_LIMIT = 2 ** 64
UINT32_LIMIT = 2 ** 32

EVM_ADDRESS_SIZE = 20
SOL_BLOCKHASH_SIZE = 32

# EIP-155: v = recovery_id + 35 + 2 * chain_id
EIP155_V_OFFSET = 35

_DECIMAL_RE = re.compile(r"[0-9]+")


# ============================================
# Input Parsing
# ============================================

def parse_amount(value: str, limit: int = UINT256_LIMIT) -> int:
    """
    Parse a non-negative decimal amount in the chain's smallest unit.

    Raises InvalidAmountFormat for anything that is not plain ASCII
    digits or does not fit below `limit`.
    """
    if not isinstance(value, str) or not _DECIMAL_RE.fullmatch(value):
        raise InvalidAmountFormat(f"Invalid amount format: {value!r}")
    amount = int(value)
    if amount >= limit:
        raise InvalidAmountFormat(f"Amount out of range: {value}")
    return amount


def _check_uint(name: str, value: int, limit: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < limit:
        raise InvalidAmountFormat(f"{name} must be an integer in [0, {limit}), got {value!r}")
    return value


def _parse_evm_address(to: str) -> bytes:
    raw = decode_hex(to, "to address", error=InvalidAddressFormat)
    if len(raw) != EVM_ADDRESS_SIZE:
        raise InvalidAddressFormat(f"EVM address must be {EVM_ADDRESS_SIZE} bytes, got {len(raw)}")
    return raw


def _parse_data(data: str) -> bytes:
    if data is None:
        return b""
    return decode_hex(data, "transaction data", error=InvalidDataEncoding)


# ============================================
# Ethereum (EIP-155)
# ============================================

class EthereumTxSigner:
    """
    Legacy EVM transactions with EIP-155 replay protection.

    Pre-signature payload: rlp([nonce, gasPrice, gas, to, value, data, chainId, 0, 0])
    Signed transaction:    rlp([nonce, gasPrice, gas, to, value, data, v, r, s])
    """

    @staticmethod
    def _fields(to: str, value: str, nonce: int, gas_price: int, gas_limit: int,
                data: str) -> list:
        return [
            _check_uint("nonce", nonce, UINT64_LIMIT),
            _check_uint("gas_price", gas_price, UINT256_LIMIT),
            _check_uint("gas_limit", gas_limit, UINT64_LIMIT),
            _parse_evm_address(to),
            parse_amount(value, UINT256_LIMIT),
            _parse_data(data),
        ]

    @staticmethod
    def signing_hash(to: str, value: str, nonce: int, gas_price: int, gas_limit: int,
                     chain_id: int, data: str = "0x") -> bytes:
        """Keccak-256 of the EIP-155 pre-signature payload."""
        fields = EthereumTxSigner._fields(to, value, nonce, gas_price, gas_limit, data)
        return keccak(rlp.encode(fields + [validate_chain_id(chain_id), 0, 0]))

    @staticmethod
    def sign_transaction(private_key_hex: str, to: str, value: str, nonce: int,
                         gas_price: int, gas_limit: int, chain_id: int) -> str:
        """
        Sign a plain value transfer.

        Returns:
            The signed transaction as 0x-prefixed RLP hex.
        """
        return EthereumTxSigner.sign_transaction_with_data(
            private_key_hex, to, value, nonce, gas_price, gas_limit, chain_id, "0x"
        )

    @staticmethod
    def sign_transaction_with_data(private_key_hex: str, to: str, value: str, nonce: int,
                                   gas_price: int, gas_limit: int, chain_id: int,
                                   data: str) -> str:
        """
        Sign a transaction carrying call data (e.g. an ERC-20 transfer,
        where `to` is the token contract and `value` is usually "0").

        Returns:
            The signed transaction as 0x-prefixed RLP hex.
        """
        chain_id = validate_chain_id(chain_id)
        fields = EthereumTxSigner._fields(to, value, nonce, gas_price, gas_limit, data)
        message_hash = keccak(rlp.encode(fields + [chain_id, 0, 0]))

        with private_key_buffer(private_key_hex) as key:
            try:
                signature = keys.PrivateKey(bytes(key)).sign_msg_hash(message_hash)
            except (ValueError, EthKeysValidationError) as exc:
                raise InvalidKeyEncoding(f"Invalid private key: {exc}") from exc

        if signature.v not in (0, 1):
            raise SignatureFailure(f"Unexpected recovery id: {signature.v}")
        v = signature.v + EIP155_V_OFFSET + 2 * chain_id

        raw = rlp.encode(fields + [v, signature.r, signature.s])
        logger.debug("Signed EVM transaction to %s on %s", to, network_label(chain_id))
        return "0x" + raw.hex()

    @staticmethod
    def build_transaction(from_address: str, to: str, value: str, nonce: int,
                          gas_price: int, gas_limit: int, chain_id: int) -> dict:
        """Unsigned transaction as a JSON-ready dict (hex gas fields)."""
        return {
            "from": from_address,
            "to": to,
            "value": value,
            "nonce": nonce,
            "gasPrice": hex(gas_price),
            "gasLimit": hex(gas_limit),
            "chainId": chain_id,
            "data": "0x",
        }


# ============================================
# Bitcoin
# ============================================

class BitcoinTxSigner:
    """
    Bitcoin transfer intent, signed.

    This is NOT a broadcastable transaction: without UTXOs there are no
    inputs to sign. The envelope commits to the transfer parameters with an
    ECDSA signature a backend can verify before building the real one.
    """

    @staticmethod
    def sign_transaction(private_key_hex: str, to: str, value: str, fee_rate: int) -> str:
        """
        Returns:
            Canonical JSON with keys type, to, value, fee_rate,
            private_key_hash (SHA-256 of the compressed public key),
            public_key (compressed, hex) and signature (DER, hex) over
            SHA-256d of the canonical JSON of {type, to, value, fee_rate}.
        """
        validate_btc_address(to)
        amount = parse_amount(value, UINT64_LIMIT)
        fee_rate = _check_uint("fee_rate", fee_rate, UINT64_LIMIT)

        body = {
            "type": "bitcoin",
            "to": to,
            "value": str(amount),
            "fee_rate": fee_rate,
        }
        canonical = json.dumps(body, separators=(',', ':'), sort_keys=True)
        digest = hashlib.sha256(hashlib.sha256(canonical.encode('utf-8')).digest()).digest()

        with private_key_buffer(private_key_hex) as key:
            try:
                signing_key = coincurve.PrivateKey(bytes(key))
            except ValueError as exc:
                raise InvalidKeyEncoding(f"Invalid secp256k1 private key: {exc}") from exc
            public_key = signing_key.public_key.format(compressed=True)
            signature = signing_key.sign(digest, hasher=None)

        envelope = dict(
            body,
            private_key_hash=hashlib.sha256(public_key).hexdigest(),
            public_key=public_key.hex(),
            signature=signature.hex(),
        )
        logger.debug("Signed Bitcoin transfer envelope to %s", to)
        return json.dumps(envelope, separators=(',', ':'), sort_keys=True)


# ============================================
# Solana / TON (Ed25519)
# ============================================

def _ed25519_sign(private_key_hex: str, message: bytes) -> bytes:
    with private_key_buffer(private_key_hex) as key:
        signing_key = Ed25519PrivateKey.from_private_bytes(bytes(key))
        return signing_key.sign(message)


class SolanaTxSigner:
    """
    Ed25519 signature over "sol:<to>:<value>:<recent_blockhash>".

    Returns only the Base64 signature, not a serialized Message.
    """

    @staticmethod
    def sign_transaction(private_key_hex: str, to: str, value: str, recent_blockhash: str) -> str:
        validate_sol_address(to)
        amount = parse_amount(value, UINT64_LIMIT)
        if not isinstance(recent_blockhash, str):
            raise InvalidDataEncoding("Recent blockhash must be a Base58 string")
        try:
            blockhash = base58.b58decode(recent_blockhash)
        except ValueError as exc:
            raise InvalidDataEncoding(f"Recent blockhash is not valid Base58: {exc}") from exc
        if len(blockhash) != SOL_BLOCKHASH_SIZE:
            raise InvalidDataEncoding(f"Recent blockhash must decode to {SOL_BLOCKHASH_SIZE} bytes")

        message = f"sol:{to}:{amount}:{recent_blockhash}".encode('utf-8')
        signature = _ed25519_sign(private_key_hex, message)
        logger.debug("Signed Solana transfer to %s", to)
        return base64.b64encode(signature).decode('ascii')


class TonTxSigner:
    """
    Ed25519 signature over "ton:<to>:<value>:<seqno>".

    Returns only the Base64 signature, not a BOC-serialized message.
    """

    @staticmethod
    def sign_transaction(private_key_hex: str, to: str, value: str, seqno: int) -> str:
        validate_ton_address(to)
        amount = parse_amount(value, UINT64_LIMIT)
        seqno = _check_uint("seqno", seqno, UINT32_LIMIT)

        message = f"ton:{to}:{amount}:{seqno}".encode('utf-8')
        signature = _ed25519_sign(private_key_hex, message)
        logger.debug("Signed TON transfer to %s (seqno %d)", to, seqno)
        return base64.b64encode(signature).decode('ascii')


# ============================================
# Message Signing
# ============================================

def sign_eth_message(private_key_hex: str, message: bytes) -> str:
    """
    EIP-191 personal_sign.

    Returns:
        65-byte r || s || v signature as 0x-prefixed hex (v is 27 or 28).
    """
    signable = encode_defunct(primitive=bytes(message))
    with private_key_buffer(private_key_hex) as key:
        try:
            signed = Account.sign_message(signable, private_key=bytes(key))
        except (ValueError, EthKeysValidationError) as exc:
            raise InvalidKeyEncoding(f"Invalid private key: {exc}") from exc
    return add_hex_prefix(bytes(signed.signature).hex())


def sign_ed25519_message(private_key_hex: str, message: bytes) -> str:
    """Raw Ed25519 signature (64 bytes) as hex, for Solana and TON keys."""
    return _ed25519_sign(private_key_hex, bytes(message)).hex()


# ============================================
# Dispatch
# ============================================

_REQUEST_TYPES = {
    Chain.ETHEREUM: EvmTransactionRequest,
    Chain.BITCOIN: BitcoinTransferRequest,
    Chain.SOLANA: SolanaTransferRequest,
    Chain.TON: TonTransferRequest,
}


def sign_transaction(chain: "str | Chain", private_key_hex: str,
                     request: TransferRequest) -> SignedTransaction:
    """
    Sign a transfer request for the given chain.

    The request type must match the chain (EvmTransactionRequest for
    Ethereum, BitcoinTransferRequest for Bitcoin, and so on).
    """
    chain = Chain.parse(chain)
    expected = _REQUEST_TYPES.get(chain)
    if expected is not None and not isinstance(request, expected):
        raise TypeError(
            f"{chain.value} expects {expected.__name__}, got {type(request).__name__}"
        )

    if chain is Chain.ETHEREUM:
        payload = EthereumTxSigner.sign_transaction_with_data(
            private_key_hex, request.to, request.value, request.nonce,
            request.gas_price, request.gas_limit, request.chain_id, request.data,
        )
        return SignedTransaction(chain.value, payload, broadcast_ready=True)
    if chain is Chain.BITCOIN:
        payload = BitcoinTxSigner.sign_transaction(
            private_key_hex, request.to, request.value, request.fee_rate
        )
        return SignedTransaction(chain.value, payload, broadcast_ready=False)
    if chain is Chain.SOLANA:
        payload = SolanaTxSigner.sign_transaction(
            private_key_hex, request.to, request.value, request.recent_blockhash
        )
        return SignedTransaction(chain.value, payload, broadcast_ready=False)
    if chain is Chain.TON:
        payload = TonTxSigner.sign_transaction(
            private_key_hex, request.to, request.value, request.seqno
        )
        return SignedTransaction(chain.value, payload, broadcast_ready=False)
    raise UnsupportedChain(f"No signer for chain: {chain}")
