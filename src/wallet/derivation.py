"""
Key Derivation - Seed to chain-specific private keys.

Two derivation schemes:
- BIP-32 over secp256k1 (Ethereum, Bitcoin), via eth_account's HD support
- SLIP-0010 over Ed25519 (Solana, TON), hardened children only

The seed comes from the caller (BIP-39 happens elsewhere). It is copied
into a private buffer that is zero-filled when the deriver is closed,
garbage-collected, or leaves a `with` block.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Iterator

from eth_account.hdaccount import key_from_seed

from chains import CHAINS, Chain, ChainConfig
from errors import InvalidDerivationPath, InvalidKeyEncoding
from utils import wipe

from . import addresses

logger = logging.getLogger(__name__)


# ============================================
# Constants
# ============================================

HARDENED_OFFSET = 0x80000000

# BIP-32 allows 128 to 512 bit seeds
MIN_SEED_SIZE = 16
MAX_SEED_SIZE = 64

ED25519_SEED_KEY = b"ed25519 seed"

_HARDENED_MARKERS = ("'", "h", "H")


# ============================================
# Derivation Paths
# ============================================

@dataclass(frozen=True)
class PathComponent:
    """One step of a derivation path."""
    index: int
    hardened: bool

    @property
    def value(self) -> int:
        """Child number as used on the wire (hardened offset applied)."""
        return self.index + HARDENED_OFFSET if self.hardened else self.index

    def __str__(self) -> str:
        return f"{self.index}'" if self.hardened else str(self.index)


@dataclass(frozen=True)
class DerivationPath:
    """An ordered list of path components below the master key."""
    components: tuple[PathComponent, ...]

    @classmethod
    def parse(cls, path: str) -> "DerivationPath":
        """
        Parse BIP-32 notation, e.g. "m/44'/60'/0'/0/0".

        Hardened steps may be marked with ', h or H. Plain "m" is the master key.
        """
        if not isinstance(path, str) or not path.strip():
            raise InvalidDerivationPath("Derivation path is empty")

        nodes = path.strip().split("/")
        if nodes[0] != "m":
            raise InvalidDerivationPath(f"Path is not valid: {path!r}. Must start with 'm'")

        components = []
        for node in nodes[1:]:
            hardened = node.endswith(_HARDENED_MARKERS)
            digits = node[:-1] if hardened else node
            if not digits or not digits.isascii() or not digits.isdigit():
                raise InvalidDerivationPath(f"Invalid path component {node!r} in {path!r}")
            index = int(digits)
            if index >= HARDENED_OFFSET:
                raise InvalidDerivationPath(f"Path component {node!r} out of range in {path!r}")
            components.append(PathComponent(index, hardened))

        return cls(tuple(components))

    @property
    def is_fully_hardened(self) -> bool:
        return all(c.hardened for c in self.components)

    def __iter__(self) -> Iterator[PathComponent]:
        return iter(self.components)

    def __len__(self) -> int:
        return len(self.components)

    def __str__(self) -> str:
        return "/".join(["m"] + [str(c) for c in self.components])


def _check_index(index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidDerivationPath(f"Address index must be an integer, got {type(index).__name__}")
    if not 0 <= index < HARDENED_OFFSET:
        raise InvalidDerivationPath(f"Address index out of range: {index}")
    return index


# ============================================
# SLIP-0010 (Ed25519)
# ============================================

def _slip10_master(seed: bytearray) -> tuple[bytearray, bytearray]:
    """Master (key, chain code) = HMAC-SHA512("ed25519 seed", seed)."""
    digest = bytearray(hmac.new(ED25519_SEED_KEY, bytes(seed), hashlib.sha512).digest())
    try:
        return bytearray(digest[:32]), bytearray(digest[32:])
    finally:
        wipe(digest)


def _slip10_child(key: bytearray, chain_code: bytearray,
                  component: PathComponent) -> tuple[bytearray, bytearray]:
    """Hardened child: HMAC-SHA512(chain code, 0x00 || key || be32(index + 2^31))."""
    data = bytearray(b"\x00") + key + component.value.to_bytes(4, "big")
    digest = None
    try:
        digest = bytearray(hmac.new(bytes(chain_code), bytes(data), hashlib.sha512).digest())
        return bytearray(digest[:32]), bytearray(digest[32:])
    finally:
        wipe(data)
        wipe(digest)


def slip10_derive(seed: bytearray, path: DerivationPath) -> bytearray:
    """
    Walk a fully hardened SLIP-0010 Ed25519 path.

    Returns the 32-byte private key; every intermediate key and chain code
    is zeroed before returning.
    """
    if not path.is_fully_hardened:
        raise InvalidDerivationPath(
            f"Ed25519 derivation requires every component hardened: {path}"
        )

    key, chain_code = _slip10_master(seed)
    try:
        for component in path:
            child_key, child_chain_code = _slip10_child(key, chain_code, component)
            wipe(key)
            wipe(chain_code)
            key, chain_code = child_key, child_chain_code
        return bytearray(key)
    finally:
        wipe(key)
        wipe(chain_code)


# ============================================
# Key Deriver
# ============================================

class KeyDeriver:
    """
    Derives private keys and addresses for every supported chain from one seed.

    Usage:
        with KeyDeriver(seed) as deriver:
            key = deriver.derive_eth_private_key(0)
            address = deriver.get_eth_address(key)

    Each instance owns its own copy of the seed. `copy()` returns an
    independent instance; closing one never affects the other. The
    instance holds no other state, so concurrent reads are safe.
    """

    def __init__(self, seed: bytes | bytearray):
        if not isinstance(seed, (bytes, bytearray, memoryview)):
            raise InvalidKeyEncoding(f"Seed must be bytes, got {type(seed).__name__}")
        if not MIN_SEED_SIZE <= len(seed) <= MAX_SEED_SIZE:
            raise InvalidKeyEncoding(
                f"Seed must be {MIN_SEED_SIZE}-{MAX_SEED_SIZE} bytes, got {len(seed)}"
            )
        self._seed = bytearray(seed)

    # ============================================
    # Lifecycle
    # ============================================

    @property
    def closed(self) -> bool:
        return self._seed is None

    def close(self) -> None:
        """Zero the seed. The deriver cannot be used afterwards."""
        seed = getattr(self, "_seed", None)
        if seed is not None:
            wipe(seed)
            self._seed = None

    def copy(self) -> "KeyDeriver":
        """Independent deriver with its own copy of the seed."""
        return KeyDeriver(self._require_seed())

    def __copy__(self) -> "KeyDeriver":
        return self.copy()

    def __deepcopy__(self, memo) -> "KeyDeriver":
        return self.copy()

    def __enter__(self) -> "KeyDeriver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        """Attempt to clear the seed on destruction."""
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<KeyDeriver {state}>"

    def _require_seed(self) -> bytearray:
        if self._seed is None:
            raise ValueError("KeyDeriver is closed")
        return self._seed

    # ============================================
    # Derivation
    # ============================================

    def derive_path(self, chain: "str | Chain", path: "str | DerivationPath") -> str:
        """
        Derive the private key at an explicit path.

        Returns the key as 64 lowercase hex chars (no 0x).
        """
        config = CHAINS[Chain.parse(chain)]
        if not isinstance(path, DerivationPath):
            path = DerivationPath.parse(path)
        return self._derive(config, path)

    def derive_private_key(self, chain: "str | Chain", index: int) -> str:
        """Derive the private key for an address index on the chain's standard path."""
        config = CHAINS[Chain.parse(chain)]
        path = DerivationPath.parse(config.path_for(_check_index(index)))
        return self._derive(config, path)

    def _derive(self, config: ChainConfig, path: DerivationPath) -> str:
        seed = self._require_seed()
        logger.debug("Deriving %s key at %s", config.display_name, path)

        if config.hardened_only:
            key = slip10_derive(seed, path)
        else:
            try:
                key = bytearray(key_from_seed(bytes(seed), str(path)))
            except ValueError as exc:
                raise InvalidDerivationPath(f"Failed to derive {config.display_name} key: {exc}") from exc

        try:
            return key.hex()
        finally:
            wipe(key)

    def derive_eth_private_key(self, index: int) -> str:
        """Ethereum: m/44'/60'/0'/0/index"""
        return self.derive_private_key(Chain.ETHEREUM, index)

    def derive_btc_private_key(self, index: int) -> str:
        """Bitcoin (Native SegWit): m/84'/0'/0'/0/index"""
        return self.derive_private_key(Chain.BITCOIN, index)

    def derive_sol_private_key(self, index: int) -> str:
        """Solana: m/44'/501'/0'/index'"""
        return self.derive_private_key(Chain.SOLANA, index)

    def derive_ton_private_key(self, index: int) -> str:
        """TON: m/44'/607'/0'/0'/0'/index'"""
        return self.derive_private_key(Chain.TON, index)

    # ============================================
    # Addresses
    # ============================================

    # Addresses only depend on the private key; these live here so callers
    # holding a deriver get the whole seed -> key -> address flow in one place.

    def address(self, chain: "str | Chain", private_key_hex: str) -> str:
        """Address for a private key on the given chain."""
        return addresses.address_for(chain, private_key_hex)

    def get_eth_address(self, private_key_hex: str) -> str:
        return addresses.get_eth_address(private_key_hex)

    def get_btc_address(self, private_key_hex: str) -> str:
        return addresses.get_btc_address(private_key_hex)

    def get_sol_address(self, private_key_hex: str) -> str:
        return addresses.get_sol_address(private_key_hex)

    def get_ton_address(self, private_key_hex: str) -> str:
        return addresses.get_ton_address(private_key_hex)

    def get_sol_public_key(self, private_key_hex: str) -> str:
        return addresses.get_ed25519_public_key(private_key_hex)

    def get_ton_public_key(self, private_key_hex: str) -> str:
        return addresses.get_ed25519_public_key(private_key_hex)
