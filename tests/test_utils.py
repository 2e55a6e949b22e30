import io
import logging

import pytest

from chains import (
    CHAINS,
    Chain,
    EVM_NETWORKS,
    format_address,
    get_chain_config,
    get_evm_network,
    get_evm_network_by_name,
    network_label,
    validate_chain_id,
)
from errors import InvalidKeyEncoding, KeyCoreError, KeystoreParseError, UnsupportedChain
from services.logging import configure_logging
from utils import add_hex_prefix, decode_hex, decode_private_key, is_hex, private_key_buffer, wipe


# ============================================
# Hex / secret buffers
# ============================================

def test_hex_helpers():
    assert add_hex_prefix("ab") == "0xab"
    assert add_hex_prefix("0xab") == "0xab"
    assert is_hex("0xABcd")
    assert not is_hex("abc")
    assert not is_hex("ab\n")
    assert decode_hex("0Xff") == b"\xff"


def test_decode_hex_uses_given_error():
    with pytest.raises(UnsupportedChain):
        decode_hex("zz", error=UnsupportedChain)


def test_decode_private_key_length():
    assert decode_private_key("0x" + "01" * 32) == bytearray(b"\x01" * 32)
    with pytest.raises(InvalidKeyEncoding):
        decode_private_key("01" * 33)


def test_wipe():
    buf = bytearray(b"secret")
    wipe(buf)
    assert buf == bytearray(6)
    wipe(None)


def test_private_key_buffer_wipes_on_exit():
    with private_key_buffer("07" * 32) as key:
        assert key == bytearray(b"\x07" * 32)
    assert not any(key)


def test_private_key_buffer_wipes_on_error():
    with pytest.raises(RuntimeError):
        with private_key_buffer("07" * 32) as key:
            raise RuntimeError("boom")
    assert not any(key)


# ============================================
# Chains
# ============================================

@pytest.mark.parametrize("value, chain", [
    ("eth", Chain.ETHEREUM),
    ("Ethereum", Chain.ETHEREUM),
    ("btc", Chain.BITCOIN),
    (" sol ", Chain.SOLANA),
    ("TON", Chain.TON),
    (Chain.TON, Chain.TON),
])
def test_chain_parse(value, chain):
    assert Chain.parse(value) is chain


@pytest.mark.parametrize("value", ["doge", "", None, 1])
def test_chain_parse_rejects(value):
    with pytest.raises(UnsupportedChain):
        Chain.parse(value)


def test_chain_registry():
    assert set(CHAINS) == set(Chain)
    assert get_chain_config("eth").path_for(3) == "m/44'/60'/0'/0/3"
    assert get_chain_config("sol").path_for(3) == "m/44'/501'/0'/3'"
    assert get_chain_config("sol").hardened_only
    assert not get_chain_config("btc").hardened_only


def test_evm_networks():
    assert set(EVM_NETWORKS) >= {1, 5, 56, 137, 11155111}
    assert get_evm_network(137).name == "polygon"
    assert get_evm_network(999999) is None
    assert get_evm_network_by_name("Sepolia").chain_id == 11155111
    assert network_label(56) == "BNB Smart Chain (56)"
    assert network_label(999999) == "chain 999999"
    assert validate_chain_id(999999) == 999999


def test_format_address():
    assert format_address("0x" + "ab" * 20) == "0xabab...abab"
    assert format_address("0xabc") == "0xabc"


# ============================================
# Errors / logging
# ============================================

def test_errors_are_value_errors():
    error = KeystoreParseError("mac")
    assert isinstance(error, KeyCoreError)
    assert isinstance(error, ValueError)
    assert error.field == "mac"
    assert "mac" in str(error)


def test_configure_logging(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    stream = io.StringIO()

    configure_logging(logging.DEBUG, stream=stream)
    configure_logging(logging.DEBUG, stream=stream)
    assert len(root.handlers) == 1

    logging.getLogger("wallet.test").debug("derived %s", "m/0'")
    assert "[DEBUG] wallet.test: derived m/0'" in stream.getvalue()
