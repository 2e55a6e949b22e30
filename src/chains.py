"""
Chains - Supported chain families and their derivation settings.

The chain set is closed: Ethereum (and every EVM network), Bitcoin,
Solana and TON. Anything that branches per chain matches on `Chain` and
ends with an UnsupportedChain raise, so adding a member shows up
everywhere it has to be handled.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from errors import UnsupportedChain


# ============================================
# Chain Families
# ============================================

class Chain(str, Enum):
    """A chain family with its own curve, path and address format."""
    ETHEREUM = "ethereum"
    BITCOIN = "bitcoin"
    SOLANA = "solana"
    TON = "ton"

    @classmethod
    def parse(cls, value: "str | Chain") -> "Chain":
        """Resolve a chain from its name or ticker (eth, btc, sol, ton)."""
        if isinstance(value, Chain):
            return value
        if not isinstance(value, str):
            raise UnsupportedChain(f"Unsupported chain: {value!r}")
        key = value.strip().lower()
        chain = _CHAIN_ALIASES.get(key)
        if chain is None:
            raise UnsupportedChain(f"Unsupported chain: {value!r}")
        return chain


CURVE_SECP256K1 = "secp256k1"
CURVE_ED25519 = "ed25519"


@dataclass(frozen=True)
class ChainConfig:
    """Derivation and display settings for a chain family."""
    chain: Chain
    display_name: str
    ticker: str
    curve: str
    coin_type: int          # SLIP-44 coin type
    path_template: str      # `{}` is replaced by the address index
    native_symbol: str
    native_decimals: int

    @property
    def hardened_only(self) -> bool:
        """SLIP-0010 Ed25519 only defines hardened children."""
        return self.curve == CURVE_ED25519

    def path_for(self, index: int) -> str:
        """Full derivation path for an address index."""
        return self.path_template.format(index)


CHAINS = {
    Chain.ETHEREUM: ChainConfig(
        chain=Chain.ETHEREUM,
        display_name="Ethereum",
        ticker="eth",
        curve=CURVE_SECP256K1,
        coin_type=60,
        path_template="m/44'/60'/0'/0/{}",
        native_symbol="ETH",
        native_decimals=18,
    ),
    # Native SegWit (P2WPKH)
    Chain.BITCOIN: ChainConfig(
        chain=Chain.BITCOIN,
        display_name="Bitcoin",
        ticker="btc",
        curve=CURVE_SECP256K1,
        coin_type=0,
        path_template="m/84'/0'/0'/0/{}",
        native_symbol="BTC",
        native_decimals=8,
    ),
    Chain.SOLANA: ChainConfig(
        chain=Chain.SOLANA,
        display_name="Solana",
        ticker="sol",
        curve=CURVE_ED25519,
        coin_type=501,
        path_template="m/44'/501'/0'/{}'",
        native_symbol="SOL",
        native_decimals=9,
    ),
    Chain.TON: ChainConfig(
        chain=Chain.TON,
        display_name="TON",
        ticker="ton",
        curve=CURVE_ED25519,
        coin_type=607,
        path_template="m/44'/607'/0'/0'/0'/{}'",
        native_symbol="TON",
        native_decimals=9,
    ),
}

_CHAIN_ALIASES = {}
for _chain, _config in CHAINS.items():
    _CHAIN_ALIASES[_chain.value] = _chain
    _CHAIN_ALIASES[_config.ticker] = _chain


def get_chain_config(chain: "str | Chain") -> ChainConfig:
    """Get the settings for a chain family."""
    return CHAINS[Chain.parse(chain)]


# ============================================
# EVM Networks
# ============================================

@dataclass(frozen=True)
class EvmNetwork:
    """An EIP-155 network sharing the Ethereum key and address format."""
    chain_id: int
    name: str
    display_name: str
    native_symbol: str
    is_testnet: bool


# Known networks, used for logging and display only. Any positive chain id
# can be signed for.
EVM_NETWORKS = {
    1: EvmNetwork(1, "ethereum", "Ethereum", "ETH", False),
    5: EvmNetwork(5, "goerli", "Goerli", "ETH", True),
    56: EvmNetwork(56, "bsc", "BNB Smart Chain", "BNB", False),
    137: EvmNetwork(137, "polygon", "Polygon", "POL", False),
    8453: EvmNetwork(8453, "base", "Base", "ETH", False),
    84532: EvmNetwork(84532, "base-sepolia", "Base Sepolia", "ETH", True),
    11155111: EvmNetwork(11155111, "sepolia", "Sepolia", "ETH", True),
}


def get_evm_network(chain_id: int) -> Optional[EvmNetwork]:
    """Get a known EVM network by chain id."""
    return EVM_NETWORKS.get(chain_id)


def get_evm_network_by_name(name: str) -> Optional[EvmNetwork]:
    """Get a known EVM network by name."""
    for network in EVM_NETWORKS.values():
        if network.name == name.lower():
            return network
    return None


def validate_chain_id(chain_id: int) -> int:
    """Check an EIP-155 chain id is a positive integer."""
    if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id <= 0:
        raise UnsupportedChain(f"Invalid EVM chain id: {chain_id!r}")
    return chain_id


def network_label(chain_id: int) -> str:
    """Human label for a chain id, e.g. 'Polygon (137)'."""
    network = get_evm_network(chain_id)
    if network is None:
        return f"chain {chain_id}"
    return f"{network.display_name} ({chain_id})"


def format_address(address: str, chars: int = 4) -> str:
    """Format address as 0x1234...5678"""
    if len(address) <= chars * 2 + 2:
        return address
    return f"{address[:chars+2]}...{address[-chars:]}"
