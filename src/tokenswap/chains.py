"""Network presets for Uniswap V3 deployments.

Each preset bundles the protocol constants the swap engine depends on:
- SwapRouter (exactInputSingle / exactInput)
- QuoterV2 (read-only quotes, no allowance required)
- Bridge asset (wrapped native token) for two-hop routes
- Destination stable asset (USDT)
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ChainConfig:
    """Configuration for an EVM network."""

    name: str
    chain_id: int
    rpc_url: str
    explorer_url: str
    router_address: str
    quoter_address: str
    bridge_asset_address: str
    stable_asset_address: str

    native_symbol: str = "ETH"
    bridge_symbol: str = "WETH"
    stable_symbol: str = "USDT"
    native_decimals: int = 18

    def tx_url(self, tx_hash: str) -> str:
        """Block explorer link for a transaction."""
        if not tx_hash.startswith("0x"):
            tx_hash = f"0x{tx_hash}"
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"


# Uniswap V3 SwapRouter and QuoterV2 share addresses across these deployments
UNISWAP_V3_ROUTER = "0xE592427A0AEce92De3Edee1F18E0157C05861564"
UNISWAP_V3_QUOTER_V2 = "0x61fFE014bA17989E743c5F6cB21bF9697530B21e"


# ======================
# Network Presets
# ======================

CHAINS: dict[str, ChainConfig] = {
    "ethereum": ChainConfig(
        name="Ethereum",
        chain_id=1,
        rpc_url=os.getenv("ETH_RPC_URL", "https://eth.llamarpc.com"),
        explorer_url="https://etherscan.io",
        router_address=UNISWAP_V3_ROUTER,
        quoter_address=UNISWAP_V3_QUOTER_V2,
        bridge_asset_address="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",  # WETH
        stable_asset_address="0xdAC17F958D2ee523a2206206994597C13D831ec7",  # USDT
    ),
    "arbitrum": ChainConfig(
        name="Arbitrum One",
        chain_id=42161,
        rpc_url=os.getenv("ARBITRUM_RPC_URL", "https://arb1.arbitrum.io/rpc"),
        explorer_url="https://arbiscan.io",
        router_address=UNISWAP_V3_ROUTER,
        quoter_address=UNISWAP_V3_QUOTER_V2,
        bridge_asset_address="0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",  # WETH
        stable_asset_address="0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9",  # USDT
    ),
    "optimism": ChainConfig(
        name="Optimism",
        chain_id=10,
        rpc_url=os.getenv("OPTIMISM_RPC_URL", "https://mainnet.optimism.io"),
        explorer_url="https://optimistic.etherscan.io",
        router_address=UNISWAP_V3_ROUTER,
        quoter_address=UNISWAP_V3_QUOTER_V2,
        bridge_asset_address="0x4200000000000000000000000000000000000006",  # WETH
        stable_asset_address="0x94b008aA00579c1307B0EF2c499aD98a8ce58e58",  # USDT
    ),
    "polygon": ChainConfig(
        name="Polygon",
        chain_id=137,
        rpc_url=os.getenv("POLYGON_RPC_URL", "https://polygon-rpc.com"),
        explorer_url="https://polygonscan.com",
        router_address=UNISWAP_V3_ROUTER,
        quoter_address=UNISWAP_V3_QUOTER_V2,
        bridge_asset_address="0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",  # WMATIC
        stable_asset_address="0xc2132D05D31c914a87C6611C10748AEb04B58e8F",  # USDT
        native_symbol="MATIC",
        bridge_symbol="WMATIC",
    ),
}


def get_chain(name: str) -> Optional[ChainConfig]:
    """Get network preset by name (case-insensitive)."""
    return CHAINS.get(name.lower())


def get_supported_networks() -> list[str]:
    """List of preset network names."""
    return list(CHAINS.keys())
