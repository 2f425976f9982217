"""Tests for the web3.py chain client against a scripted JSON-RPC provider."""

import pytest
from eth_account import Account
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.providers.base import BaseProvider

from tokenswap.chain.abi import ERC20_ABI
from tokenswap.chain.base import CallReverted, SubmissionError, TransactionReverted
from tokenswap.chain.contracts import SwapRouter
from tokenswap.chain.web3_client import Web3ChainClient
from tokenswap.swap import SwapExecutor, SwapRequest, SwapStage

from tests.conftest import NOW, RECIPIENT, ROUTER, TOKEN, USDT

TEST_KEY = "0x" + "4c" * 32
TX_HASH = "0x" + "ab" * 32


def rpc_error(message: str, code: int = -32000) -> dict:
    return {"error": {"code": code, "message": message}}


def uint_result(value: int) -> str:
    return "0x" + f"{value:064x}"


class ScriptedProvider(BaseProvider):
    """Answers each JSON-RPC method from a fixed table and records requests."""

    def __init__(self, results=None):
        super().__init__()
        self.results = {
            "eth_chainId": "0x1",
            "eth_getCode": "0x",
            "eth_gasPrice": hex(10**9),
            "eth_getTransactionCount": "0x0",
            "eth_sendRawTransaction": TX_HASH,
        }
        self.results.update(results or {})
        self.calls = []

    def make_request(self, method, params):
        self.calls.append(method)
        result = self.results.get(method)
        if method not in self.results:
            result = rpc_error(f"the method {method} does not exist", code=-32601)
        if isinstance(result, dict) and "error" in result:
            return {"jsonrpc": "2.0", "id": 1, **result}
        return {"jsonrpc": "2.0", "id": 1, "result": result}

    def is_connected(self, show_traceback: bool = False) -> bool:
        return True

    def count(self, method: str) -> int:
        return self.calls.count(method)


def make_client(results=None) -> tuple[Web3ChainClient, ScriptedProvider]:
    provider = ScriptedProvider(results)
    client = Web3ChainClient(
        "http://localhost:8545",
        Account.from_key(TEST_KEY),
        chain_id=1,
        poll_interval=0,
    )
    client._web3 = Web3(provider)
    return client, provider


@pytest.fixture(autouse=True)
def clear_nonce_cache():
    """Nonce cache is class-level; isolate each test."""
    Web3ChainClient._nonce_cache.clear()
    yield
    Web3ChainClient._nonce_cache.clear()


class TestReads:
    """Tests for read-only calls."""

    @pytest.mark.asyncio
    async def test_decimals(self):
        client, _ = make_client({"eth_call": uint_result(18)})
        assert await client.read_decimals(TOKEN) == 18

    @pytest.mark.asyncio
    async def test_native_balance(self):
        client, _ = make_client({"eth_getBalance": hex(5 * 10**18)})
        assert await client.read_balance(None, client.address) == 5 * 10**18

    @pytest.mark.asyncio
    async def test_revert_maps_to_call_reverted(self):
        client, _ = make_client({"eth_call": rpc_error("execution reverted: STF", code=3)})

        with pytest.raises(CallReverted) as exc_info:
            await client.read_decimals(TOKEN)

        assert "STF" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_empty_return_data_maps_to_call_reverted(self):
        """Address without contract code answers eth_call with empty data."""
        client, _ = make_client({"eth_call": "0x"})

        with pytest.raises(CallReverted, match="decimals"):
            await client.read_decimals(TOKEN)

    @pytest.mark.asyncio
    async def test_node_errors_propagate(self):
        client, _ = make_client({"eth_call": rpc_error("internal error")})

        with pytest.raises(Web3Exception) as exc_info:
            await client.read_decimals(TOKEN)

        assert not isinstance(exc_info.value, CallReverted)


class TestWrites:
    """Tests for signing, nonce handling and submission."""

    @pytest.mark.asyncio
    async def test_nonces_are_not_reused(self):
        client, provider = make_client({"eth_getTransactionCount": "0x5"})

        assert await client.send_value(RECIPIENT, 1) == TX_HASH
        assert await client.send_value(RECIPIENT, 1) == TX_HASH

        assert provider.count("eth_sendRawTransaction") == 2
        assert Web3ChainClient._nonce_cache[client.address] == 7

    @pytest.mark.asyncio
    async def test_rejected_send_resets_nonce_cache(self):
        client, _ = make_client({"eth_sendRawTransaction": rpc_error("nonce too low")})

        with pytest.raises(SubmissionError, match="nonce too low"):
            await client.send_value(RECIPIENT, 1)

        assert client.address not in Web3ChainClient._nonce_cache

    @pytest.mark.asyncio
    async def test_send_value_build_failure(self):
        client, provider = make_client({"eth_gasPrice": rpc_error("gas price unavailable")})

        with pytest.raises(SubmissionError, match="Could not build"):
            await client.send_value(RECIPIENT, 1)

        assert client.address not in Web3ChainClient._nonce_cache
        assert provider.count("eth_sendRawTransaction") == 0

    @pytest.mark.asyncio
    async def test_send_transaction_build_failure(self):
        client, provider = make_client({"eth_getTransactionCount": rpc_error("upstream failure")})

        with pytest.raises(SubmissionError, match="approve"):
            await client.send_transaction(TOKEN, ERC20_ABI, "approve", (ROUTER, 1), gas_limit=100_000)

        assert provider.count("eth_sendRawTransaction") == 0

    @pytest.mark.asyncio
    async def test_struct_params_with_lowercase_addresses(self):
        client, provider = make_client()
        router = SwapRouter(client, ROUTER)

        tx_hash = await router.exact_input_single(
            token_in=TOKEN,
            token_out=USDT,
            fee=500,
            recipient=client.address.lower(),
            deadline=NOW + 1200,
            amount_in=10**18,
            amount_out_minimum=1,
            gas_limit=300_000,
        )

        assert tx_hash == TX_HASH
        assert provider.count("eth_sendRawTransaction") == 1

    def test_normalize_args_checksums_nested_addresses(self):
        args = Web3ChainClient._normalize_args([{"tokenIn": TOKEN, "fee": 500}, USDT, 7])

        assert args[0]["tokenIn"] == Web3.to_checksum_address(TOKEN)
        assert args[0]["fee"] == 500
        assert args[1] == Web3.to_checksum_address(USDT)
        assert args[2] == 7


class TestConfirmation:
    """Tests for receipt polling."""

    @pytest.mark.asyncio
    async def test_successful_receipt(self):
        client, _ = make_client({
            "eth_getTransactionReceipt": {"status": "0x1", "blockNumber": "0x10", "gasUsed": "0x5208"},
        })

        receipt = await client.wait_for_confirmation(TX_HASH)

        assert receipt.succeeded
        assert receipt.block_number == 16
        assert receipt.gas_used == 21_000

    @pytest.mark.asyncio
    async def test_failed_receipt_raises(self):
        client, _ = make_client({
            "eth_getTransactionReceipt": {"status": "0x0", "blockNumber": "0x10", "gasUsed": "0x5208"},
        })

        with pytest.raises(TransactionReverted) as exc_info:
            await client.wait_for_confirmation(TX_HASH)

        assert isinstance(exc_info.value, CallReverted)
        assert TX_HASH in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_pending_transaction_times_out(self):
        client, _ = make_client({"eth_getTransactionReceipt": None})

        with pytest.raises(TimeoutError):
            await client.wait_for_confirmation(TX_HASH, timeout=0.05)


class TestSwapOnLiveClient:
    """Executor behaviour on top of the web3 client."""

    @pytest.mark.asyncio
    async def test_token_without_contract_is_metadata_unavailable(self, swap_config):
        client, provider = make_client({"eth_getBalance": hex(10**18), "eth_call": "0x"})
        executor = SwapExecutor(client, swap_config)

        result = await executor.execute_swap(SwapRequest(TOKEN, "1", client.address))

        assert not result.success
        assert result.error_kind == "MetadataUnavailable"
        assert result.failed_at == SwapStage.PRECONDITIONS_CHECKED
        assert provider.count("eth_sendRawTransaction") == 0
