"""In-memory simulated chain for dry runs and tests.

Implements the ChainClient contract with deterministic pools:
- QuoterV2.quoteExactInputSingle against registered pools
- ERC-20 balanceOf / decimals / symbol / approve / transfer
- SwapRouter.exactInputSingle / exactInput with deadline, allowance,
  balance and minimum-output checks

Pools are linear: output = amount_in * (1 - fee) * rate. Nothing here
should be used to estimate real prices.
"""

import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from tokenswap.chain.base import (
    CallReverted,
    ChainClient,
    SubmissionError,
    TransactionReverted,
    TxReceipt,
)
from tokenswap.chain.encoding import decode_path

logger = logging.getLogger(__name__)

FEE_DENOMINATOR = 1_000_000


def _key(address: Optional[str]) -> Optional[str]:
    return address.lower() if address else None


@dataclass
class SimulatedToken:
    """ERC-20 state."""

    address: str
    decimals: Optional[int] = 18  # None = decimals() reverts
    symbol: str = "TKN"
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)


@dataclass
class SimulatedPool:
    """One direction of a pool: token_in -> token_out at a fee tier."""

    fee: int
    rate_num: int = 1
    rate_den: int = 1
    max_amount_in: Optional[int] = None


@dataclass
class SentTransaction:
    """Record of a submitted transaction."""

    tx_hash: str
    contract: Optional[str]
    function: str
    args: tuple
    gas_limit: Optional[int]


class SimulatedChainClient(ChainClient):
    """Deterministic in-memory chain."""

    def __init__(
        self,
        wallet: str = "0x00000000000000000000000000000000000000a1",
        native_balance: int = 10**18,
        clock: Callable[[], float] = time.time,
        strict_sequencing: bool = True,
    ):
        self._address = wallet
        self.clock = clock
        self.strict_sequencing = strict_sequencing
        self.native_balances: dict[str, int] = {_key(wallet): native_balance}
        self.tokens: dict[str, SimulatedToken] = {}
        self.pools: dict[tuple[str, str, int], SimulatedPool] = {}
        self.sent: list[SentTransaction] = []
        self.reads: list[tuple[str, Optional[str]]] = []
        self.unreadable: set[str] = set()
        self._forced_reverts: dict[str, str] = {}
        self._rejections: dict[str, str] = {}
        self._receipts: dict[str, tuple[TxReceipt, str]] = {}
        self._pending: set[str] = set()
        self._block = 1

    @property
    def address(self) -> str:
        return self._address

    # ======================
    # Setup helpers
    # ======================

    def add_token(
        self,
        address: str,
        decimals: Optional[int] = 18,
        symbol: str = "TKN",
        balance: int = 0,
    ) -> SimulatedToken:
        """Register a token, crediting the wallet with balance."""
        token = SimulatedToken(address=address, decimals=decimals, symbol=symbol)
        token.balances[_key(self._address)] = balance
        self.tokens[_key(address)] = token
        return token

    def set_balance(self, asset: Optional[str], owner: str, amount: int) -> None:
        """Set native (asset=None) or token balance."""
        if asset is None:
            self.native_balances[_key(owner)] = amount
        else:
            self._token(asset).balances[_key(owner)] = amount

    def add_pool(
        self,
        token_a: str,
        token_b: str,
        fee: int,
        rate_num: int = 1,
        rate_den: int = 1,
        max_amount_in: Optional[int] = None,
    ) -> None:
        """Register a pool in both directions.

        rate_num / rate_den is the price of one smallest unit of token_a in
        smallest units of token_b. max_amount_in caps a -> b trades.
        """
        self.pools[(_key(token_a), _key(token_b), fee)] = SimulatedPool(
            fee=fee, rate_num=rate_num, rate_den=rate_den, max_amount_in=max_amount_in
        )
        self.pools[(_key(token_b), _key(token_a), fee)] = SimulatedPool(
            fee=fee, rate_num=rate_den, rate_den=rate_num
        )

    def fail_next(self, function: str, reason: str = "execution reverted") -> None:
        """Make the next submitted call to function revert on-chain."""
        self._forced_reverts[function] = reason

    def reject_next(self, function: str, reason: str = "insufficient funds for gas") -> None:
        """Make the next submission of function fail before it is mined."""
        self._rejections[function] = reason

    def sent_functions(self) -> list[str]:
        """Names of submitted transactions, in order."""
        return [tx.function for tx in self.sent]

    # ======================
    # Internals
    # ======================

    def _token(self, address: str) -> SimulatedToken:
        token = self.tokens.get(_key(address))
        if token is None:
            raise CallReverted(f"no contract at {address}")
        return token

    def _pool_output(self, token_in: str, token_out: str, fee: int, amount_in: int) -> int:
        pool = self.pools.get((_key(token_in), _key(token_out), int(fee)))
        if pool is None:
            raise CallReverted("pool does not exist")
        if amount_in <= 0:
            raise CallReverted("AS")
        if pool.max_amount_in is not None and amount_in > pool.max_amount_in:
            raise CallReverted("SPL")
        after_fee = amount_in * (FEE_DENOMINATOR - pool.fee) // FEE_DENOMINATOR
        return after_fee * pool.rate_num // pool.rate_den

    def _path_output(self, tokens: list[str], fees: list[int], amount_in: int) -> int:
        amount = amount_in
        for i, fee in enumerate(fees):
            amount = self._pool_output(tokens[i], tokens[i + 1], fee, amount)
        return amount

    def _pull(self, token_address: str, owner: str, spender: str, amount: int) -> None:
        token = self._token(token_address)
        if token.allowances.get((_key(owner), _key(spender)), 0) < amount:
            raise CallReverted("STF")
        if token.balances.get(_key(owner), 0) < amount:
            raise CallReverted("STF")

    def _swap_single(self, router: str, params: dict, execute: bool) -> int:
        if params["deadline"] < self.clock():
            raise CallReverted("Transaction too old")
        self._pull(params["tokenIn"], self._address, router, params["amountIn"])
        out = self._pool_output(params["tokenIn"], params["tokenOut"], params["fee"], params["amountIn"])
        if out < params["amountOutMinimum"]:
            raise CallReverted("Too little received")
        if execute:
            self._settle(router, params["tokenIn"], params["tokenOut"], params["amountIn"], out, params["recipient"])
        return out

    def _swap_path(self, router: str, params: dict, execute: bool) -> int:
        if params["deadline"] < self.clock():
            raise CallReverted("Transaction too old")
        tokens, fees = decode_path(params["path"])
        self._pull(tokens[0], self._address, router, params["amountIn"])
        out = self._path_output(tokens, fees, params["amountIn"])
        if out < params["amountOutMinimum"]:
            raise CallReverted("Too little received")
        if execute:
            self._settle(router, tokens[0], tokens[-1], params["amountIn"], out, params["recipient"])
        return out

    def _settle(self, router: str, token_in: str, token_out: str, amount_in: int, amount_out: int, recipient: str) -> None:
        src = self._token(token_in)
        wallet = _key(self._address)
        src.balances[wallet] -= amount_in
        src.allowances[(wallet, _key(router))] -= amount_in
        dst = self._token(token_out)
        dst.balances[_key(recipient)] = dst.balances.get(_key(recipient), 0) + amount_out

    def _execute(self, contract: str, function: str, args: tuple, execute: bool) -> Any:
        if function == "quoteExactInputSingle":
            params = args[0]
            out = self._pool_output(params["tokenIn"], params["tokenOut"], params["fee"], params["amountIn"])
            return (out, 0, 0, 0)
        if function == "exactInputSingle":
            return self._swap_single(contract, args[0], execute)
        if function == "exactInput":
            return self._swap_path(contract, args[0], execute)

        token = self._token(contract)
        if function == "balanceOf":
            return token.balances.get(_key(args[0]), 0)
        if function == "decimals":
            if token.decimals is None:
                raise CallReverted("decimals() not implemented")
            return token.decimals
        if function == "symbol":
            return token.symbol
        if function == "approve":
            if execute:
                token.allowances[(_key(self._address), _key(args[0]))] = args[1]
            return True
        if function == "transfer":
            wallet = _key(self._address)
            if token.balances.get(wallet, 0) < args[1]:
                raise CallReverted("transfer amount exceeds balance")
            if execute:
                token.balances[wallet] -= args[1]
                token.balances[_key(args[0])] = token.balances.get(_key(args[0]), 0) + args[1]
            return True

        raise CallReverted(f"unknown function {function}")

    def _record(self, contract: Optional[str], function: str, args: tuple, gas_limit: Optional[int], reason: str) -> str:
        if self.strict_sequencing and self._pending:
            raise RuntimeError(
                f"{function} submitted while {len(self._pending)} transaction(s) are unconfirmed"
            )
        tx_hash = f"0x{secrets.token_hex(32)}"
        self._block += 1
        status = 0 if reason else 1
        self._receipts[tx_hash] = (TxReceipt(tx_hash=tx_hash, status=status, block_number=self._block), reason)
        self._pending.add(tx_hash)
        self.sent.append(
            SentTransaction(tx_hash=tx_hash, contract=contract, function=function, args=args, gas_limit=gas_limit)
        )
        logger.info(f"[SIMULATED] {function} sent: {tx_hash}" + (f" (will revert: {reason})" if reason else ""))
        return tx_hash

    # ======================
    # ChainClient
    # ======================

    async def simulate_call(
        self,
        contract: str,
        abi: list[dict],
        function: str,
        args: Sequence[Any] = (),
    ) -> Any:
        return self._execute(contract, function, tuple(args), execute=False)

    async def read_balance(self, asset: Optional[str], owner: str) -> int:
        self.reads.append(("balance", asset))
        if asset is not None and _key(asset) in self.unreadable:
            raise ConnectionError(f"balanceOf unavailable for {asset}")
        if asset is None:
            return self.native_balances.get(_key(owner), 0)
        return self._execute(asset, "balanceOf", (owner,), execute=False)

    async def read_decimals(self, asset: str) -> int:
        self.reads.append(("decimals", asset))
        return self._execute(asset, "decimals", (), execute=False)

    async def send_transaction(
        self,
        contract: str,
        abi: list[dict],
        function: str,
        args: Sequence[Any] = (),
        gas_limit: Optional[int] = None,
    ) -> str:
        args = tuple(args)
        if function in self._rejections:
            raise SubmissionError(self._rejections.pop(function))
        reason = self._forced_reverts.pop(function, "")
        if not reason:
            try:
                self._execute(contract, function, args, execute=True)
            except CallReverted as e:
                reason = e.reason
        return self._record(contract, function, args, gas_limit, reason)

    async def send_value(self, to: str, amount: int, gas_limit: int = 21_000) -> str:
        if "send_value" in self._rejections:
            raise SubmissionError(self._rejections.pop("send_value"))
        reason = self._forced_reverts.pop("send_value", "")
        wallet = _key(self._address)
        if not reason:
            if self.native_balances.get(wallet, 0) < amount:
                reason = "insufficient funds"
            else:
                self.native_balances[wallet] -= amount
                self.native_balances[_key(to)] = self.native_balances.get(_key(to), 0) + amount
        return self._record(None, "send_value", (to, amount), gas_limit, reason)

    async def wait_for_confirmation(
        self,
        tx_hash: str,
        timeout: Optional[float] = None,
    ) -> TxReceipt:
        if tx_hash not in self._receipts:
            raise ValueError(f"Unknown transaction {tx_hash}")
        self._pending.discard(tx_hash)
        receipt, reason = self._receipts[tx_hash]
        if not receipt.succeeded:
            raise TransactionReverted(tx_hash, reason)
        return receipt
