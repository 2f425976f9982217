"""Swap execution engine.

Drives one swap attempt through a linear state machine:

    START -> PRECONDITIONS_CHECKED -> ROUTE_PLANNED -> APPROVED
          -> QUOTED -> SUBMITTED -> CONFIRMED

Any step can end the attempt in FAILED. Routing only simulates through the
quoter, so it runs before the approval and a swap with no route never
touches the chain.
"""

import asyncio
import logging
import time
from decimal import Decimal
from typing import Callable, Optional

from web3 import Web3

from tokenswap.chain.base import CallReverted, ChainClient, SubmissionError
from tokenswap.chain.contracts import ERC20Token, QuoterV2, SwapRouter
from tokenswap.config import SwapConfig
from tokenswap.errors import (
    ApprovalFailedError,
    InsufficientGasError,
    InsufficientTokenBalanceError,
    MetadataUnavailableError,
    SwapError,
    SwapRevertedError,
)
from tokenswap.swap.models import (
    Quote,
    Route,
    SwapRequest,
    SwapResult,
    SwapStage,
    TokenAmount,
    from_smallest_unit,
    parse_amount,
)
from tokenswap.swap.planner import RoutePlanner
from tokenswap.swap.prober import FeeTierProber
from tokenswap.swap.quoter import QuoteEngine
from tokenswap.utils.locks import WalletLock

logger = logging.getLogger(__name__)


class SwapExecutor:
    """Swaps a token into the configured stable asset."""

    def __init__(
        self,
        client: ChainClient,
        config: SwapConfig,
        planner: Optional[RoutePlanner] = None,
        quote_engine: Optional[QuoteEngine] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize executor.

        Args:
            client: Chain access for the signing wallet
            config: Swap policy (addresses, tolerances, gas ceilings)
            planner: Route planner (built from config if omitted)
            quote_engine: Quote engine (built from config if omitted)
            clock: Source of the current unix time for deadlines
        """
        self.client = client
        self.config = config
        self.clock = clock

        quoter = QuoterV2(client, config.quoter_address)
        self.planner = planner or RoutePlanner(
            FeeTierProber(quoter, parallel=config.parallel_probe),
            config.fee_tiers,
        )
        self.quote_engine = quote_engine or QuoteEngine(quoter, config.slippage_bps)
        self.router = SwapRouter(client, config.router_address)

    async def execute_swap(self, request: SwapRequest) -> SwapResult:
        """
        Execute a swap of request.token_in into the stable asset.

        Args:
            request: Token, human amount and wallet

        Returns:
            SwapResult. Failures are reported with success=False, the error
            kind and the stage that failed; they are never retried.

        Raises:
            ValueError: For malformed input, before any chain access
        """
        if not Web3.is_address(request.token_in):
            raise ValueError(f"Invalid token address: {request.token_in}")
        token_out = self.config.stable_asset_address
        human_amount = parse_amount(request.amount)

        if request.token_in.lower() == token_out.lower():
            raise ValueError("Cannot swap the stable asset into itself")
        if request.wallet.lower() != self.client.address.lower():
            raise ValueError(f"Wallet {request.wallet} is not the signing account {self.client.address}")

        result = SwapResult(
            success=False,
            stage=SwapStage.START,
            token_in=request.token_in,
            token_out=token_out,
            amount_in=human_amount,
        )

        async with WalletLock(request.wallet, operation="swap"):
            try:
                await self._run(request, human_amount, result)
            except SwapError as e:
                result.failed_at = SwapStage(e.stage) if e.stage else result.stage
                result.stage = SwapStage.FAILED
                result.error_kind = e.kind
                result.error = str(e)
                logger.error(f"Swap failed [{e.kind}]: {e}")

        return result

    def _advance(self, result: SwapResult, stage: SwapStage, detail: str = "") -> None:
        result.stage = stage
        logger.info(f"Swap stage {stage.value}" + (f": {detail}" if detail else ""))

    async def _run(self, request: SwapRequest, human_amount: Decimal, result: SwapResult) -> None:
        wallet = request.wallet
        token = ERC20Token(self.client, request.token_in)

        amount_in = await self._check_preconditions(token, wallet, human_amount)
        self._advance(result, SwapStage.PRECONDITIONS_CHECKED, f"{human_amount} of {request.token_in}")

        route = await self.planner.plan(
            request.token_in,
            self.config.stable_asset_address,
            self.config.bridge_asset_address,
        )
        result.route = route
        self._advance(result, SwapStage.ROUTE_PLANNED, route.describe())

        result.approval_tx_hash = await self._approve(token, amount_in.amount, route)
        self._advance(result, SwapStage.APPROVED, result.approval_tx_hash)

        quote = await self.quote_engine.quote_route(route, amount_in.amount)
        result.quote = quote
        self._advance(
            result,
            SwapStage.QUOTED,
            f"expected {quote.expected_out}, minimum {quote.minimum_out}",
        )

        deadline = int(self.clock()) + (request.deadline_seconds or self.config.deadline_seconds)
        tx_hash = await self._submit(route, quote, wallet, deadline)
        result.tx_hash = tx_hash
        result.explorer_url = self.config.tx_url(tx_hash)
        self._advance(result, SwapStage.SUBMITTED, tx_hash)

        try:
            await self.client.wait_for_confirmation(tx_hash)
        except CallReverted as e:
            raise SwapRevertedError(
                f"Swap transaction reverted: {e.reason}",
                stage=SwapStage.CONFIRMED.value,
                route=route,
            ) from e

        result.success = True
        self._advance(result, SwapStage.CONFIRMED, result.explorer_url)

        result.output_balance = await self._read_output_balance(wallet)

    async def _check_preconditions(self, token: ERC20Token, wallet: str, human_amount: Decimal) -> TokenAmount:
        """Validate gas, metadata and balance; returns the exact amount to swap."""
        stage = SwapStage.PRECONDITIONS_CHECKED.value

        native = await self.client.read_balance(None, wallet)
        if native < self.config.min_gas_reserve:
            have = from_smallest_unit(native, self.config.native_decimals)
            need = from_smallest_unit(self.config.min_gas_reserve, self.config.native_decimals)
            raise InsufficientGasError(
                f"Insufficient {self.config.native_symbol} for gas: "
                f"have {have.normalize():f}, need at least {need.normalize():f}",
                stage=stage,
            )

        try:
            decimals = await token.decimals()
        except CallReverted as e:
            raise MetadataUnavailableError(
                f"Could not read decimals for {token.address}: {e.reason}",
                stage=stage,
            ) from e

        amount_in = TokenAmount.from_human(token.address, human_amount, decimals)

        balance = await token.balance_of(wallet)
        if balance < amount_in.amount:
            available = TokenAmount(token.address, balance, decimals)
            raise InsufficientTokenBalanceError(
                f"Insufficient token balance: have {available}, requested {amount_in}",
                stage=stage,
            )

        return amount_in

    async def _approve(self, token: ERC20Token, amount_in: int, route: Route) -> str:
        stage = SwapStage.APPROVED.value
        try:
            tx_hash = await token.approve(
                self.config.router_address,
                amount_in,
                gas_limit=self.config.approval_gas_limit,
            )
        except (CallReverted, SubmissionError) as e:
            raise ApprovalFailedError(f"Approval could not be submitted: {e}", stage=stage, route=route) from e

        logger.info(f"Approval sent: {tx_hash}")
        try:
            await self.client.wait_for_confirmation(tx_hash)
        except CallReverted as e:
            raise ApprovalFailedError(f"Approval reverted: {e.reason}", stage=stage, route=route) from e
        return tx_hash

    async def _submit(self, route: Route, quote: Quote, recipient: str, deadline: int) -> str:
        try:
            if route.is_two_hop:
                return await self.router.exact_input(
                    tokens=route.tokens,
                    fees=route.fees,
                    recipient=recipient,
                    deadline=deadline,
                    amount_in=quote.amount_in,
                    amount_out_minimum=quote.minimum_out,
                    gas_limit=self.config.two_hop_gas_limit,
                )
            return await self.router.exact_input_single(
                token_in=route.token_in,
                token_out=route.token_out,
                fee=route.fee,
                recipient=recipient,
                deadline=deadline,
                amount_in=quote.amount_in,
                amount_out_minimum=quote.minimum_out,
                gas_limit=self.config.direct_gas_limit,
            )
        except (CallReverted, SubmissionError) as e:
            raise SwapRevertedError(
                f"Swap transaction failed: {e}",
                stage=SwapStage.SUBMITTED.value,
                route=route,
            ) from e

    async def _read_output_balance(self, wallet: str) -> Optional[Decimal]:
        stable = ERC20Token(self.client, self.config.stable_asset_address)
        try:
            balance, decimals = await asyncio.gather(stable.balance_of(wallet), stable.decimals())
        except Exception as e:
            logger.warning(f"Swap confirmed but output balance could not be read: {e}")
            return None
        return from_smallest_unit(balance, decimals)
