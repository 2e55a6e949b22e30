import copy
import hashlib
import hmac

import coincurve
import pytest
from eth_keys import keys

from chains import Chain
from errors import InvalidDerivationPath, InvalidKeyEncoding, UnsupportedChain
from wallet import DerivationPath, KeyDeriver, slip10_derive

from vectors import ABANDON_SEED, BIP32_SEED, ZERO_SEED_ETH_ADDRESS, ZERO_SEED_ETH_KEY

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def _reference_bip32(seed: bytes, path: list[int]) -> str:
    """Textbook BIP-32 private derivation, independent of eth_account."""
    digest = hmac.new(b"Bitcoin seed", seed, hashlib.sha512).digest()
    k, chain_code = int.from_bytes(digest[:32], "big"), digest[32:]
    for index in path:
        if index >= 0x80000000:
            data = b"\x00" + k.to_bytes(32, "big") + index.to_bytes(4, "big")
        else:
            public_key = coincurve.PrivateKey(k.to_bytes(32, "big")).public_key.format(compressed=True)
            data = public_key + index.to_bytes(4, "big")
        digest = hmac.new(chain_code, data, hashlib.sha512).digest()
        k = (int.from_bytes(digest[:32], "big") + k) % SECP256K1_N
        chain_code = digest[32:]
    return k.to_bytes(32, "big").hex()


# ============================================
# Derivation paths
# ============================================

def test_parse_path_roundtrips_to_string():
    path = DerivationPath.parse("m/44'/60'/0'/0/7")
    assert str(path) == "m/44'/60'/0'/0/7"
    assert len(path) == 5
    assert [c.hardened for c in path] == [True, True, True, False, False]
    assert path.components[0].value == 44 + 0x80000000


def test_parse_path_accepts_h_markers():
    assert str(DerivationPath.parse("m/44h/501H/0'")) == "m/44'/501'/0'"


def test_parse_master_path():
    path = DerivationPath.parse("m")
    assert len(path) == 0
    assert path.is_fully_hardened


@pytest.mark.parametrize("bad", ["", "44'/0", "m//0", "m/x", "m/-1", "m/1''", "m/2147483648", "M/0", "m/٣"])
def test_parse_path_rejects_malformed(bad):
    with pytest.raises(InvalidDerivationPath):
        DerivationPath.parse(bad)


# ============================================
# BIP-32 (secp256k1)
# ============================================

@pytest.mark.parametrize("path, expected", [
    ("m/0'", "edb2e14f9ee77d26dd93b4ecede8d16ed408ce149b6cd80b0715a2d911a0afea"),
    ("m/0'/1", "3c6cb8d0f6a264c91ea8b5030fadaa8e538b020f0a387421a12de9319dc93368"),
    ("m/0'/1/2'/2/1000000000", "471b76e389e528d6de6d816857e012c5455051cad6660850e58372a6c3e6e7c8"),
])
def test_bip32_vector_1(path, expected):
    with KeyDeriver(BIP32_SEED) as deriver:
        assert deriver.derive_path(Chain.ETHEREUM, path) == expected


def test_abandon_mnemonic_addresses():
    with KeyDeriver(ABANDON_SEED) as deriver:
        eth_key = deriver.derive_eth_private_key(0)
        btc_key = deriver.derive_btc_private_key(0)
        assert deriver.get_eth_address(eth_key) == "0x9858effd232b4033e47d90003d41ec34ecaeda94"
        assert deriver.get_btc_address(btc_key) == "bc1qcr8te4kr609gcawutmrza0j4xv80jy8z306fyu"


def test_all_zero_seed_eth_scenario():
    seed = bytes(64)
    expected_key = _reference_bip32(seed, [44 | 0x80000000, 60 | 0x80000000, 0x80000000, 0, 0])
    assert expected_key == ZERO_SEED_ETH_KEY
    expected_address = keys.PrivateKey(bytes.fromhex(expected_key)).public_key.to_address()

    with KeyDeriver(seed) as deriver:
        key = deriver.derive_eth_private_key(0)
        assert key == expected_key
        assert deriver.get_eth_address(key) == expected_address.lower()
        assert deriver.get_eth_address(key) == ZERO_SEED_ETH_ADDRESS


def test_btc_uses_bip84_path(deriver):
    assert deriver.derive_btc_private_key(3) == deriver.derive_path("btc", "m/84'/0'/0'/0/3")


# ============================================
# SLIP-0010 (Ed25519)
# ============================================

@pytest.mark.parametrize("path, expected", [
    ("m", "2b4be7f19ee27bbf30c667b642d5f4aa69fd169872f8fc3059c08ebae2eb19e7"),
    ("m/0'", "68e0fe46dfb67e368c75379acec591dad19df3cde26e63b93a8e704f1dade7a3"),
    ("m/0'/1'", "b1d0bad404bf35da785a64ca1ac54b2617211d2777696fbffaf208f746ae84f2"),
    ("m/0'/1'/2'", "92a5b23c0b8a99e37d07df3fb9966917f5d06e02ddbd909c7e184371463e9fc9"),
])
def test_slip10_ed25519_vector_1(path, expected):
    with KeyDeriver(BIP32_SEED) as deriver:
        assert deriver.derive_path(Chain.SOLANA, path) == expected


def test_slip10_public_key_vector():
    with KeyDeriver(BIP32_SEED) as deriver:
        key = deriver.derive_path(Chain.TON, "m/0'")
        assert deriver.get_ton_public_key(key) == "8c8a13df77a28f3445213a0f432fde644acaa215fc72dcdf300d5efaa85d350c"


def test_slip10_rejects_soft_components(deriver):
    with pytest.raises(InvalidDerivationPath):
        deriver.derive_path(Chain.SOLANA, "m/44'/501'/0'/0")


def test_slip10_derive_direct_matches_deriver():
    key = slip10_derive(bytearray(BIP32_SEED), DerivationPath.parse("m/0'/1'"))
    assert key.hex() == "b1d0bad404bf35da785a64ca1ac54b2617211d2777696fbffaf208f746ae84f2"


def test_sol_and_ton_standard_paths(deriver):
    assert deriver.derive_sol_private_key(2) == deriver.derive_path(Chain.SOLANA, "m/44'/501'/0'/2'")
    assert deriver.derive_ton_private_key(2) == deriver.derive_path(Chain.TON, "m/44'/607'/0'/0'/0'/2'")


# ============================================
# KeyDeriver behaviour
# ============================================

@pytest.mark.parametrize("chain", list(Chain))
def test_derivation_is_deterministic(seed, chain):
    first = KeyDeriver(seed).derive_private_key(chain, 5)
    second = KeyDeriver(bytearray(seed)).derive_private_key(chain, 5)
    assert first == second
    assert len(first) == 64
    assert first == first.lower()


def test_indices_give_distinct_keys(deriver):
    keys_by_index = {deriver.derive_eth_private_key(i) for i in range(5)}
    assert len(keys_by_index) == 5


def test_chains_give_distinct_keys(deriver):
    derived = {deriver.derive_private_key(chain, 0) for chain in Chain}
    assert len(derived) == len(Chain)


@pytest.mark.parametrize("index", [-1, 2 ** 31, True, "0", 1.0])
def test_index_out_of_range(deriver, index):
    with pytest.raises(InvalidDerivationPath):
        deriver.derive_eth_private_key(index)


@pytest.mark.parametrize("seed", [b"", b"\x01" * 15, b"\x01" * 65])
def test_seed_length_is_checked(seed):
    with pytest.raises(InvalidKeyEncoding):
        KeyDeriver(seed)


def test_seed_type_is_checked():
    with pytest.raises(InvalidKeyEncoding):
        KeyDeriver("00" * 32)


def test_unknown_chain(deriver):
    with pytest.raises(UnsupportedChain):
        deriver.derive_private_key("dogecoin", 0)


def test_close_zeroes_seed(seed):
    deriver = KeyDeriver(seed)
    buffer = deriver._seed
    deriver.close()
    assert deriver.closed
    assert buffer == bytearray(len(seed))
    with pytest.raises(ValueError):
        deriver.derive_eth_private_key(0)


def test_context_manager_closes(seed):
    with KeyDeriver(seed) as deriver:
        buffer = deriver._seed
    assert deriver.closed
    assert not any(buffer)


def test_caller_seed_is_copied(seed):
    source = bytearray(seed)
    deriver = KeyDeriver(source)
    expected = deriver.derive_eth_private_key(0)
    source[:] = bytes(len(source))
    assert deriver.derive_eth_private_key(0) == expected


def test_copy_is_independent(seed):
    original = KeyDeriver(seed)
    clone = original.copy()
    shallow = copy.copy(original)
    deep = copy.deepcopy(original)
    expected = original.derive_sol_private_key(0)

    original.close()

    for instance in (clone, shallow, deep):
        assert not instance.closed
        assert instance.derive_sol_private_key(0) == expected


def test_repr_does_not_leak_seed(seed):
    deriver = KeyDeriver(seed)
    assert seed.hex() not in repr(deriver)
    assert repr(deriver) == "<KeyDeriver open>"
