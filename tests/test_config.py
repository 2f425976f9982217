"""Tests for settings, network presets and key loading."""

import pytest
from eth_account import Account
from pydantic import ValidationError

from tokenswap.chain.signer import load_account
from tokenswap.chains import CHAINS, UNISWAP_V3_QUOTER_V2, UNISWAP_V3_ROUTER, get_chain
from tokenswap.config import DEFAULT_FEE_TIERS, Settings, SwapConfig

from tests.conftest import QUOTER, ROUTER, USDT, WETH

TEST_KEY = "0x" + "4c" * 32
TEST_MNEMONIC = " ".join(["abandon"] * 11 + ["about"])


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        config = make_settings().swap_config()

        assert config.router_address == UNISWAP_V3_ROUTER
        assert config.quoter_address == UNISWAP_V3_QUOTER_V2
        assert config.fee_tiers == DEFAULT_FEE_TIERS
        assert config.slippage_bps == 50
        assert config.min_gas_reserve == 10**15
        assert config.min_transfer_gas_reserve == 10**14
        assert config.deadline_seconds == 1200
        assert config.direct_gas_limit == 300_000
        assert config.two_hop_gas_limit == 500_000
        assert config.approval_gas_limit == 100_000

    def test_network_preset(self):
        settings = make_settings(network="Polygon")
        chain = settings.get_chain()

        assert settings.network == "polygon"
        assert chain.chain_id == 137
        assert settings.swap_config().native_symbol == "MATIC"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FEE_TIERS", "3000, 500,2500")
        monkeypatch.setenv("ROUTER_ADDRESS", ROUTER)
        monkeypatch.setenv("STABLE_ASSET_ADDRESS", USDT)
        monkeypatch.setenv("SLIPPAGE_BPS", "100")
        monkeypatch.setenv("MIN_GAS_RESERVE", "0.01")

        config = make_settings().swap_config()

        assert config.fee_tiers == (500, 2500, 3000)
        assert config.router_address == ROUTER
        assert config.stable_asset_address == USDT
        assert config.slippage_bps == 100
        assert config.min_gas_reserve == 10**16

    def test_unknown_network(self):
        with pytest.raises(ValidationError):
            make_settings(network="dogechain")

    def test_invalid_slippage(self):
        with pytest.raises(ValidationError):
            make_settings(slippage_bps=10_000)

    def test_invalid_fee_tiers(self):
        with pytest.raises(ValidationError):
            make_settings(fee_tiers="500,abc")
        with pytest.raises(ValidationError):
            make_settings(fee_tiers=" , ")

    def test_safe_dict_redacts_secrets(self):
        settings = make_settings(
            private_key=TEST_KEY,
            rpc_url="https://eth-mainnet.g.alchemy.com/v2/abcdefghijklmnopqrstuvwxyz",
        )

        data = settings.get_safe_dict()

        assert data["private_key"] == "***"
        assert data["wallet_configured"] is True
        assert data["network"]["rpc"] == "https://eth-mainnet.g.alchemy.com/v2/***"
        assert TEST_KEY not in str(data)

    def test_has_wallet(self):
        assert not make_settings().has_wallet
        assert make_settings(wallet_seed_phrase=TEST_MNEMONIC).has_wallet
        assert not make_settings(wallet_seed_phrase="too short").has_wallet


class TestSwapConfig:
    """Tests for SwapConfig."""

    def test_fee_tiers_sorted_and_deduplicated(self):
        config = SwapConfig(ROUTER, QUOTER, WETH, USDT, fee_tiers=(3000, 100, 3000))
        assert config.fee_tiers == (100, 3000)

    def test_rejects_empty_tiers(self):
        with pytest.raises(ValueError):
            SwapConfig(ROUTER, QUOTER, WETH, USDT, fee_tiers=())

    def test_rejects_bad_slippage(self):
        with pytest.raises(ValueError):
            SwapConfig(ROUTER, QUOTER, WETH, USDT, slippage_bps=-1)

    def test_tx_url(self):
        config = SwapConfig(ROUTER, QUOTER, WETH, USDT, explorer_url="https://arbiscan.io/")
        assert config.tx_url("abc") == "https://arbiscan.io/tx/0xabc"


class TestChains:
    """Tests for network presets."""

    def test_presets_complete(self):
        assert set(CHAINS) == {"ethereum", "arbitrum", "optimism", "polygon"}
        for chain in CHAINS.values():
            assert chain.router_address and chain.quoter_address
            assert chain.bridge_asset_address != chain.stable_asset_address

    def test_get_chain_case_insensitive(self):
        assert get_chain("ETHEREUM") is CHAINS["ethereum"]
        assert get_chain("unknown") is None


class TestLoadAccount:
    """Tests for signing key loading."""

    def test_private_key(self):
        account = load_account(private_key=TEST_KEY)
        assert account.address == Account.from_key(TEST_KEY).address

    def test_private_key_wins_over_seed(self):
        account = load_account(private_key=TEST_KEY, seed_phrase=TEST_MNEMONIC)
        assert account.address == Account.from_key(TEST_KEY).address

    def test_seed_phrase_derivation(self):
        """Standard BIP-44 path m/44'/60'/0'/0/0 for the all-abandon test vector."""
        account = load_account(seed_phrase=TEST_MNEMONIC)
        assert account.address == "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"

    def test_seed_phrase_index(self):
        first = load_account(seed_phrase=TEST_MNEMONIC, index=0)
        second = load_account(seed_phrase=TEST_MNEMONIC, index=1)
        assert first.address != second.address

    def test_missing_secret(self):
        with pytest.raises(ValueError):
            load_account()

    def test_short_seed_phrase(self):
        with pytest.raises(ValueError):
            load_account(seed_phrase="one two three")
