"""Pytest configuration and fixtures."""

import os

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ.pop("PRIVATE_KEY", None)
os.environ.pop("WALLET_SEED_PHRASE", None)

from tokenswap.chain.simulated import SimulatedChainClient
from tokenswap.config import SwapConfig
from tokenswap.utils.locks import clear_wallet_locks

TOKEN = "0x" + "11" * 20
WETH = "0x" + "22" * 20
USDT = "0x" + "33" * 20
ROUTER = "0x" + "44" * 20
QUOTER = "0x" + "55" * 20
RECIPIENT = "0x" + "66" * 20

NOW = 1_700_000_000

# 1 TOKEN (18 decimals) = 2 USDT (6 decimals)
TOKEN_USDT_RATE = (2, 10**12)


@pytest.fixture(autouse=True)
def reset_locks():
    """Clear wallet locks before each test."""
    clear_wallet_locks()
    yield
    clear_wallet_locks()


@pytest.fixture
def swap_config() -> SwapConfig:
    """Swap policy pointing at the simulated contracts."""
    return SwapConfig(
        router_address=ROUTER,
        quoter_address=QUOTER,
        bridge_asset_address=WETH,
        stable_asset_address=USDT,
    )


@pytest.fixture
def chain() -> SimulatedChainClient:
    """Simulated chain with a funded wallet holding 100 TOKEN."""
    client = SimulatedChainClient(clock=lambda: NOW)
    client.add_token(TOKEN, decimals=18, symbol="TKN", balance=100 * 10**18)
    client.add_token(WETH, decimals=18, symbol="WETH")
    client.add_token(USDT, decimals=6, symbol="USDT")
    return client
