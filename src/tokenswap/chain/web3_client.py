"""web3.py chain client.

Signs locally with eth-account and talks JSON-RPC through web3.py. The
web3 HTTP provider is synchronous, so every RPC round-trip runs in a worker
thread to keep independent reads concurrent on the event loop.
"""

import asyncio
import logging
import threading
import time
from typing import Any, Optional, Sequence

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    TransactionNotFound,
    Web3Exception,
)

from tokenswap.chain.abi import ERC20_ABI
from tokenswap.chain.base import (
    CallReverted,
    ChainClient,
    SubmissionError,
    TransactionReverted,
    TxReceipt,
)

logger = logging.getLogger(__name__)


def _revert_reason(error: Exception) -> str:
    """Best-effort human-readable revert reason."""
    message = getattr(error, "message", None) or str(error)
    return message or type(error).__name__


class Web3ChainClient(ChainClient):
    """Chain client for EVM networks backed by web3.py."""

    # Class-level nonce cache shared by clients of the same process
    _nonce_cache: dict[str, int] = {}
    _nonce_lock = threading.Lock()

    def __init__(
        self,
        rpc_url: str,
        account: LocalAccount,
        chain_id: Optional[int] = None,
        poll_interval: float = 2.0,
    ):
        self.rpc_url = rpc_url
        self.account = account
        self.chain_id = chain_id
        self.poll_interval = poll_interval
        self._web3: Optional[Web3] = None

    @property
    def web3(self) -> Web3:
        """Lazy load web3 instance."""
        if self._web3 is None:
            self._web3 = Web3(Web3.HTTPProvider(self.rpc_url))
        return self._web3

    @property
    def address(self) -> str:
        return self.account.address

    def _contract(self, address: str, abi: list[dict]):
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    @staticmethod
    def _normalize_args(args: Sequence[Any]) -> list:
        """Checksum every address-looking string, including inside struct params."""

        def convert(value):
            if isinstance(value, str) and Web3.is_address(value):
                return Web3.to_checksum_address(value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return [convert(a) for a in args]

    def _get_next_nonce(self, address: str) -> int:
        """Get next nonce for address, never reusing one handed out earlier."""
        with self._nonce_lock:
            chain_nonce = self.web3.eth.get_transaction_count(address, "pending")
            cached_nonce = self._nonce_cache.get(address, 0)
            next_nonce = max(chain_nonce, cached_nonce)
            self._nonce_cache[address] = next_nonce + 1
            return next_nonce

    def _reset_nonce_cache(self, address: str) -> None:
        """Reset nonce cache for address (after a failed send)."""
        with self._nonce_lock:
            self._nonce_cache.pop(address, None)

    def _get_chain_id(self) -> int:
        if self.chain_id is None:
            self.chain_id = self.web3.eth.chain_id
        return self.chain_id

    # ======================
    # Reads
    # ======================

    async def simulate_call(
        self,
        contract: str,
        abi: list[dict],
        function: str,
        args: Sequence[Any] = (),
    ) -> Any:
        fn = getattr(self._contract(contract, abi).functions, function)(*self._normalize_args(args))

        def call():
            try:
                return fn.call({"from": self.address})
            except ContractLogicError as e:
                raise CallReverted(_revert_reason(e)) from e
            except BadFunctionCallOutput as e:
                # Empty return data: no contract at the address or no such function
                raise CallReverted(f"no usable return data from {contract}.{function}") from e
            except ValueError as e:
                # Some providers report reverts as plain JSON-RPC errors
                if "revert" in str(e).lower():
                    raise CallReverted(_revert_reason(e)) from e
                raise

        return await asyncio.to_thread(call)

    async def read_balance(self, asset: Optional[str], owner: str) -> int:
        owner = Web3.to_checksum_address(owner)
        if asset is None:
            return await asyncio.to_thread(self.web3.eth.get_balance, owner)
        return int(await self.simulate_call(asset, ERC20_ABI, "balanceOf", (owner,)))

    async def read_decimals(self, asset: str) -> int:
        return int(await self.simulate_call(asset, ERC20_ABI, "decimals"))

    # ======================
    # Writes
    # ======================

    async def send_transaction(
        self,
        contract: str,
        abi: list[dict],
        function: str,
        args: Sequence[Any] = (),
        gas_limit: Optional[int] = None,
    ) -> str:
        fn = getattr(self._contract(contract, abi).functions, function)(*self._normalize_args(args))

        def build() -> dict:
            tx_params = {
                "from": self.address,
                "nonce": self._get_next_nonce(self.address),
                "chainId": self._get_chain_id(),
                "gasPrice": self.web3.eth.gas_price,
            }
            if gas_limit is not None:
                tx_params["gas"] = gas_limit
            return fn.build_transaction(tx_params)

        try:
            tx = await asyncio.to_thread(build)
        except (Web3Exception, ValueError) as e:
            self._reset_nonce_cache(self.address)
            raise SubmissionError(f"Could not build {function} transaction: {_revert_reason(e)}") from e
        return await self._sign_and_send(tx)

    async def send_value(self, to: str, amount: int, gas_limit: int = 21_000) -> str:
        def build() -> dict:
            return {
                "from": self.address,
                "to": Web3.to_checksum_address(to),
                "value": amount,
                "gas": gas_limit,
                "nonce": self._get_next_nonce(self.address),
                "chainId": self._get_chain_id(),
                "gasPrice": self.web3.eth.gas_price,
            }

        try:
            tx = await asyncio.to_thread(build)
        except (Web3Exception, ValueError) as e:
            self._reset_nonce_cache(self.address)
            raise SubmissionError(f"Could not build transfer transaction: {_revert_reason(e)}") from e
        return await self._sign_and_send(tx)

    async def _sign_and_send(self, tx: dict) -> str:
        signed_tx = self.account.sign_transaction(tx)
        try:
            tx_hash = await asyncio.to_thread(
                self.web3.eth.send_raw_transaction, signed_tx.raw_transaction
            )
        except (Web3Exception, ValueError) as e:
            # Next transaction must fetch a fresh nonce
            self._reset_nonce_cache(self.address)
            raise SubmissionError(_revert_reason(e)) from e
        except Exception:
            self._reset_nonce_cache(self.address)
            raise

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"Transaction sent: {tx_hash_hex} (nonce {tx['nonce']})")
        return tx_hash_hex

    async def wait_for_confirmation(
        self,
        tx_hash: str,
        timeout: Optional[float] = None,
    ) -> TxReceipt:
        start_time = time.monotonic()

        while True:
            if timeout is not None and time.monotonic() - start_time > timeout:
                raise TimeoutError(f"Transaction {tx_hash} not confirmed after {timeout}s")

            try:
                receipt = await asyncio.to_thread(self.web3.eth.get_transaction_receipt, tx_hash)
            except TransactionNotFound:
                receipt = None

            if receipt is not None:
                result = TxReceipt(
                    tx_hash=tx_hash,
                    status=int(receipt["status"]),
                    block_number=receipt.get("blockNumber"),
                    gas_used=receipt.get("gasUsed"),
                )
                if not result.succeeded:
                    raise TransactionReverted(tx_hash, f"reverted in block {result.block_number}")
                logger.debug(f"Transaction {tx_hash} confirmed in block {result.block_number}")
                return result

            await asyncio.sleep(self.poll_interval)
