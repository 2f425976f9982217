"""Quote computation with slippage protection."""

import logging

from tokenswap.chain.base import CallReverted
from tokenswap.chain.contracts import FeeQuotable
from tokenswap.config import BPS_DENOMINATOR
from tokenswap.errors import QuoteFailedError
from tokenswap.swap.models import Quote, Route, SwapStage

logger = logging.getLogger(__name__)


def minimum_out(expected_out: int, slippage_bps: int) -> int:
    """Apply the slippage tolerance to an expected output.

    Integer floor of expected_out * (1 - slippage_bps / 10000).
    """
    if expected_out < 0:
        raise ValueError(f"expected_out must be >= 0, got {expected_out}")
    if not 0 <= slippage_bps < BPS_DENOMINATOR:
        raise ValueError(f"slippage_bps out of range: {slippage_bps}")
    return expected_out * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


class QuoteEngine:
    """Computes expected and minimum outputs for planned routes."""

    def __init__(self, quoter: FeeQuotable, slippage_bps: int):
        self.quoter = quoter
        self.slippage_bps = slippage_bps

    async def quote(self, token_in: str, token_out: str, fee: int, amount_in: int) -> int:
        """
        Simulate the real amount through one pool.

        Raises:
            QuoteFailedError: If the simulation reverts. The tier was already
                probed, so this is a hard failure rather than "no pool".
        """
        try:
            return await self.quoter.quote_exact_input_single(token_in, token_out, fee, amount_in)
        except CallReverted as e:
            raise QuoteFailedError(
                f"Failed to get quote for {amount_in} {token_in} -> {token_out}: {e.reason}",
                stage=SwapStage.QUOTED.value,
                fee=fee,
            ) from e

    def minimum_out(self, expected_out: int) -> int:
        return minimum_out(expected_out, self.slippage_bps)

    async def quote_route(self, route: Route, amount_in: int) -> Quote:
        """
        Quote a full route.

        For two hops, leg 1's minimum output is leg 2's input, so slippage
        is applied once per hop.
        """
        try:
            if not route.is_two_hop:
                expected = await self.quote(route.token_in, route.token_out, route.fee, amount_in)
                legs = [expected]
            else:
                first = await self.quote(route.token_in, route.bridge, route.fee_in, amount_in)
                expected = await self.quote(route.bridge, route.token_out, route.fee_out, self.minimum_out(first))
                legs = [first, expected]
        except QuoteFailedError as e:
            e.route = route
            raise

        quote = Quote(
            route=route,
            amount_in=amount_in,
            expected_out=expected,
            minimum_out=self.minimum_out(expected),
            slippage_bps=self.slippage_bps,
            leg_outputs=legs,
        )
        logger.info(
            f"Quote {route.describe()}: {amount_in} in -> expected {quote.expected_out}, "
            f"minimum {quote.minimum_out} ({self.slippage_bps} bps slippage)"
        )
        return quote
