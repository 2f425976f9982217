"""Tests for wallet balance and transfer services."""

from decimal import Decimal

import pytest

from tokenswap.services.balance_service import UNKNOWN_SYMBOL, BalanceService
from tokenswap.services.transfer_service import TransferService

from tests.conftest import RECIPIENT, TOKEN, USDT, WETH


class TestBalanceService:
    """Tests for BalanceService."""

    @pytest.mark.asyncio
    async def test_native_and_token_balances(self, chain):
        service = BalanceService(chain)

        balances = await service.get_balances([TOKEN, USDT])

        assert [b.symbol for b in balances] == ["ETH", "TKN"]
        assert balances[0].is_native
        assert balances[0].amount == Decimal(1)
        assert balances[1].amount == Decimal(100)
        assert str(balances[1]) == "100"

    @pytest.mark.asyncio
    async def test_include_zero(self, chain):
        service = BalanceService(chain)

        balances = await service.get_balances([TOKEN, USDT, WETH], include_zero=True)

        assert [b.symbol for b in balances] == ["ETH", "TKN", "USDT", "WETH"]
        assert balances[2].raw == 0

    @pytest.mark.asyncio
    async def test_unreadable_metadata_reported_as_unknown(self, chain):
        broken = "0x" + "77" * 20
        chain.add_token(broken, decimals=None, balance=5)
        service = BalanceService(chain)

        balance = await service.get_token_balance(broken)

        assert balance.symbol == UNKNOWN_SYMBOL
        assert balance.raw == 5
        assert balance.amount is None
        assert str(balance) == "5 (raw)"

    @pytest.mark.asyncio
    async def test_balance_read_failure_propagates(self, chain):
        chain.unreadable.add(TOKEN)
        service = BalanceService(chain)

        with pytest.raises(ConnectionError):
            await service.get_balances([TOKEN])


class TestTransferService:
    """Tests for TransferService."""

    @pytest.mark.asyncio
    async def test_native_transfer(self, chain, swap_config):
        service = TransferService(chain, swap_config)

        result = await service.transfer(None, RECIPIENT, "0.25")

        assert result.success
        assert result.explorer_url == f"https://etherscan.io/tx/{result.tx_hash}"
        assert chain.native_balances[RECIPIENT] == 25 * 10**16
        assert chain.sent[0].function == "send_value"
        assert chain.sent[0].gas_limit == 21_000

    @pytest.mark.asyncio
    async def test_token_transfer(self, chain, swap_config):
        service = TransferService(chain, swap_config)

        result = await service.transfer(TOKEN, RECIPIENT, "1.5")

        assert result.success
        assert chain.tokens[TOKEN].balances[RECIPIENT] == 15 * 10**17
        assert chain.sent_functions() == ["transfer"]

    @pytest.mark.asyncio
    async def test_invalid_recipient(self, chain, swap_config):
        service = TransferService(chain, swap_config)

        with pytest.raises(ValueError, match="recipient"):
            await service.transfer(TOKEN, "0x1234", "1")

        assert chain.reads == []

    @pytest.mark.asyncio
    async def test_gas_reserve(self, chain, swap_config):
        chain.set_balance(None, chain.address, 10**14 - 1)
        service = TransferService(chain, swap_config)

        result = await service.transfer(TOKEN, RECIPIENT, "1")

        assert not result.success
        assert result.error_kind == "InsufficientGas"
        assert chain.sent == []

    @pytest.mark.asyncio
    async def test_native_transfer_keeps_gas_reserve(self, chain, swap_config):
        service = TransferService(chain, swap_config)

        result = await service.transfer(None, RECIPIENT, "1")

        assert result.error_kind == "InsufficientTokenBalance"
        assert chain.sent == []

    @pytest.mark.asyncio
    async def test_insufficient_token_balance(self, chain, swap_config):
        service = TransferService(chain, swap_config)

        result = await service.transfer(TOKEN, RECIPIENT, "101")

        assert result.error_kind == "InsufficientTokenBalance"
        assert "have 100" in result.error

    @pytest.mark.asyncio
    async def test_reverted_transfer(self, chain, swap_config):
        chain.fail_next("transfer", "paused")
        service = TransferService(chain, swap_config)

        result = await service.transfer(TOKEN, RECIPIENT, "1")

        assert result.error_kind == "TransferFailed"
        assert "paused" in result.error
        assert result.tx_hash is not None

    @pytest.mark.asyncio
    async def test_rejected_transfer(self, chain, swap_config):
        chain.reject_next("send_value", "nonce too low")
        service = TransferService(chain, swap_config)

        result = await service.transfer(None, RECIPIENT, "0.1")

        assert result.error_kind == "TransferFailed"
        assert result.tx_hash is None
