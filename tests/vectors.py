"""Published test vectors shared across test modules."""

# BIP-32 test vector 1
BIP32_SEED = bytes.fromhex("000102030405060708090a0b0c0d0e0f")

# BIP-39 seed of "abandon abandon ... abandon about" (no passphrase)
ABANDON_SEED = bytes.fromhex(
    "5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1"
    "9a5ac40b389cd370d086206dec8aa6c43daea6690f20ad3d8d48b2d2ce9e38e4"
)

# Key from the Ethereum account documentation
ETH_PRIVATE_KEY = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
ETH_ADDRESS = "0x2c7536e3605d9c16a7a3d7b1898e529396a65c23"

# RFC 8032 test 1
ED25519_SECRET = "9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60"
ED25519_PUBLIC = "d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a"
ED25519_EMPTY_MESSAGE_SIGNATURE = (
    "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e065224901555"
    "fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
)

# secp256k1 private key 1 (generator point)
SECP256K1_ONE = "00" * 31 + "01"

# All-zero 64-byte seed, m/44'/60'/0'/0/0
ZERO_SEED_ETH_KEY = "761a3d94f077cebbbfb18e5e440049bb64530b0418888e4cdaa680fd7c4abe6a"
ZERO_SEED_ETH_ADDRESS = "0xb73f8cc7b63c5ed98d6f7c7ba59c8094972b1166"
