"""Application configuration using pydantic-settings.

Network constants come from a preset in ``tokenswap.chains`` and every one
of them can be overridden from the environment, so the same engine runs
against any Uniswap V3 deployment.
"""

from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokenswap.chains import ChainConfig, get_chain, get_supported_networks

DEFAULT_FEE_TIERS = (100, 500, 3000, 10000)  # 0.01%, 0.05%, 0.3%, 1%
BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class SwapConfig:
    """Immutable swap policy for one network.

    Passed into the planner and executor at construction so that several
    networks or tolerances can coexist in one process.
    """

    router_address: str
    quoter_address: str
    bridge_asset_address: str
    stable_asset_address: str
    fee_tiers: tuple[int, ...] = DEFAULT_FEE_TIERS
    slippage_bps: int = 50
    min_gas_reserve: int = 10**15  # wei (0.001 native)
    min_transfer_gas_reserve: int = 10**14  # wei (0.0001 native)
    deadline_seconds: int = 20 * 60
    direct_gas_limit: int = 300_000
    two_hop_gas_limit: int = 500_000
    approval_gas_limit: int = 100_000
    explorer_url: str = "https://etherscan.io"
    native_symbol: str = "ETH"
    native_decimals: int = 18
    parallel_probe: bool = False

    def __post_init__(self):
        if not self.fee_tiers:
            raise ValueError("At least one fee tier is required")
        if not 0 <= self.slippage_bps < BPS_DENOMINATOR:
            raise ValueError(f"slippage_bps must be in [0, {BPS_DENOMINATOR}), got {self.slippage_bps}")
        # Preference order is lowest fee first
        object.__setattr__(self, "fee_tiers", tuple(sorted(set(self.fee_tiers))))

    def tx_url(self, tx_hash: str) -> str:
        """Block explorer link for a transaction."""
        if not tx_hash.startswith("0x"):
            tx_hash = f"0x{tx_hash}"
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    # ======================
    # Network
    # ======================
    network: str = Field(default="ethereum", description="Network preset name")
    rpc_url: Optional[str] = Field(default=None, description="RPC URL (overrides preset)")

    # ======================
    # Wallet
    # ======================
    private_key: Optional[str] = Field(default=None, description="Hex private key of the swap wallet")
    wallet_seed_phrase: Optional[str] = Field(
        default=None, description="BIP-39 seed phrase (used when PRIVATE_KEY is not set)"
    )
    wallet_index: int = Field(default=0, description="BIP-44 address index for seed derivation")

    # ======================
    # Protocol overrides
    # ======================
    router_address: Optional[str] = Field(default=None, description="Uniswap V3 SwapRouter")
    quoter_address: Optional[str] = Field(default=None, description="Uniswap V3 QuoterV2")
    bridge_asset_address: Optional[str] = Field(default=None, description="Intermediate asset for two-hop routes")
    stable_asset_address: Optional[str] = Field(default=None, description="Destination stable asset")
    explorer_url: Optional[str] = Field(default=None, description="Block explorer base URL")

    # ======================
    # Swap policy
    # ======================
    fee_tiers: str = Field(default="100,500,3000,10000", description="Comma-separated fee tiers (ppm)")
    slippage_bps: int = Field(default=50, description="Slippage tolerance in basis points (50 = 0.5%)")
    min_gas_reserve: Decimal = Field(
        default=Decimal("0.001"), description="Minimum native balance required before a swap"
    )
    min_transfer_gas_reserve: Decimal = Field(
        default=Decimal("0.0001"), description="Minimum native balance required before a transfer"
    )
    deadline_seconds: int = Field(default=1200, description="Swap deadline horizon (20 minutes)")
    direct_gas_limit: int = Field(default=300_000, description="Gas ceiling for single-pool swaps")
    two_hop_gas_limit: int = Field(default=500_000, description="Gas ceiling for two-pool swaps")
    approval_gas_limit: int = Field(default=100_000, description="Gas ceiling for approvals")
    parallel_probe: bool = Field(default=False, description="Probe fee tiers concurrently")

    @field_validator("network")
    @classmethod
    def _known_network(cls, value: str) -> str:
        if get_chain(value) is None:
            raise ValueError(
                f"Unknown network '{value}'. Supported: {', '.join(get_supported_networks())}"
            )
        return value.lower()

    @field_validator("slippage_bps")
    @classmethod
    def _slippage_range(cls, value: int) -> int:
        if not 0 <= value < 10_000:
            raise ValueError("slippage_bps must be between 0 and 9999")
        return value

    @field_validator("fee_tiers")
    @classmethod
    def _parse_fee_tiers(cls, value: str) -> str:
        tiers = [t.strip() for t in value.split(",") if t.strip()]
        if not tiers:
            raise ValueError("fee_tiers must list at least one tier")
        for tier in tiers:
            if not tier.isdigit() or not 0 < int(tier) < 1_000_000:
                raise ValueError(f"Invalid fee tier: {tier}")
        return ",".join(tiers)

    @property
    def fee_tier_list(self) -> tuple[int, ...]:
        """Parse fee tiers into a sorted tuple of integers."""
        return tuple(sorted({int(t) for t in self.fee_tiers.split(",")}))

    @property
    def has_wallet(self) -> bool:
        """Check if a signing key is configured."""
        if self.private_key:
            return True
        return bool(self.wallet_seed_phrase and len(self.wallet_seed_phrase.split()) >= 12)

    def get_chain(self) -> ChainConfig:
        """Get the network preset with environment overrides applied."""
        preset = get_chain(self.network)
        return ChainConfig(
            name=preset.name,
            chain_id=preset.chain_id,
            rpc_url=self.rpc_url or preset.rpc_url,
            explorer_url=self.explorer_url or preset.explorer_url,
            router_address=self.router_address or preset.router_address,
            quoter_address=self.quoter_address or preset.quoter_address,
            bridge_asset_address=self.bridge_asset_address or preset.bridge_asset_address,
            stable_asset_address=self.stable_asset_address or preset.stable_asset_address,
            native_symbol=preset.native_symbol,
            bridge_symbol=preset.bridge_symbol,
            stable_symbol=preset.stable_symbol,
            native_decimals=preset.native_decimals,
        )

    def swap_config(self) -> SwapConfig:
        """Build the immutable swap policy for the configured network."""
        chain = self.get_chain()
        scale = Decimal(10) ** chain.native_decimals
        return SwapConfig(
            router_address=chain.router_address,
            quoter_address=chain.quoter_address,
            bridge_asset_address=chain.bridge_asset_address,
            stable_asset_address=chain.stable_asset_address,
            fee_tiers=self.fee_tier_list,
            slippage_bps=self.slippage_bps,
            min_gas_reserve=int(self.min_gas_reserve * scale),
            min_transfer_gas_reserve=int(self.min_transfer_gas_reserve * scale),
            deadline_seconds=self.deadline_seconds,
            direct_gas_limit=self.direct_gas_limit,
            two_hop_gas_limit=self.two_hop_gas_limit,
            approval_gas_limit=self.approval_gas_limit,
            explorer_url=chain.explorer_url,
            native_symbol=chain.native_symbol,
            native_decimals=chain.native_decimals,
            parallel_probe=self.parallel_probe,
        )

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        chain = self.get_chain()
        return {
            "environment": self.environment,
            "debug": self.debug,
            "network": {
                "name": chain.name,
                "chain_id": chain.chain_id,
                "rpc": self._redact_url(chain.rpc_url),
                "explorer": chain.explorer_url,
            },
            "wallet_configured": self.has_wallet,
            "private_key": "***" if self.private_key else "(not set)",
            "seed_phrase": "***" if self.wallet_seed_phrase else "(not set)",
            "contracts": {
                "router": chain.router_address,
                "quoter": chain.quoter_address,
                "bridge_asset": chain.bridge_asset_address,
                "stable_asset": chain.stable_asset_address,
            },
            "swap": {
                "fee_tiers": list(self.fee_tier_list),
                "slippage_bps": self.slippage_bps,
                "min_gas_reserve": str(self.min_gas_reserve),
                "deadline_seconds": self.deadline_seconds,
                "direct_gas_limit": self.direct_gas_limit,
                "two_hop_gas_limit": self.two_hop_gas_limit,
                "parallel_probe": self.parallel_probe,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact an API key embedded in the last path segment of an RPC URL."""
        if "://" not in url:
            return url
        proto, rest = url.split("://", 1)
        parts = rest.split("/")
        if len(parts) > 1 and len(parts[-1]) >= 20:
            parts[-1] = "***"
        return f"{proto}://{'/'.join(parts)}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
