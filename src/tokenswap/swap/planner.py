"""Route selection: direct pool first, bridged two-hop fallback."""

import asyncio
import logging
from typing import Iterable, Optional

from tokenswap.errors import NoLiquidityError
from tokenswap.swap.models import DirectRoute, Route, SwapStage, TwoHopRoute, fee_percent
from tokenswap.swap.prober import FeeTierProber

logger = logging.getLogger(__name__)


class RoutePlanner:
    """Chooses between a direct pool and a route through a bridge asset.

    Priority is strict: a working direct pool is always used, even if the
    two-hop route would pay less in fees. Routes are never cost-compared.
    """

    def __init__(self, prober: FeeTierProber, fee_tiers: Iterable[int]):
        self.prober = prober
        self.fee_tiers = tuple(fee_tiers)

    async def plan(
        self,
        token_in: str,
        token_out: str,
        bridge_asset: str,
        candidates: Optional[Iterable[int]] = None,
    ) -> Route:
        """
        Find a route from token_in to token_out.

        Args:
            token_in: Input token address
            token_out: Destination token address
            bridge_asset: Intermediate asset for the fallback route
            candidates: Fee tiers to probe (defaults to configured tiers)

        Returns:
            DirectRoute or TwoHopRoute

        Raises:
            NoLiquidityError: If neither route has pools on every leg
        """
        if token_in.lower() == token_out.lower():
            raise ValueError("Input and output token are the same")

        tiers = tuple(candidates) if candidates is not None else self.fee_tiers

        direct_fee = await self.prober.probe(token_in, token_out, tiers)
        if direct_fee is not None:
            logger.info(f"Found direct pool with {fee_percent(direct_fee).normalize()}% fee")
            return DirectRoute(token_in=token_in, token_out=token_out, fee=direct_fee)

        if bridge_asset.lower() in (token_in.lower(), token_out.lower()):
            raise NoLiquidityError(
                f"No direct pool for {token_in} -> {token_out} and no distinct bridge asset",
                stage=SwapStage.ROUTE_PLANNED.value,
            )

        fee_in, fee_out = await asyncio.gather(
            self.prober.probe(token_in, bridge_asset, tiers),
            self.prober.probe(bridge_asset, token_out, tiers),
        )

        if fee_in is None or fee_out is None:
            missing = []
            if fee_in is None:
                missing.append(f"{token_in} -> {bridge_asset}")
            if fee_out is None:
                missing.append(f"{bridge_asset} -> {token_out}")
            raise NoLiquidityError(
                f"No available liquidity pools found for {token_in} "
                f"(direct pool missing; bridge leg missing: {', '.join(missing)})",
                stage=SwapStage.ROUTE_PLANNED.value,
            )

        logger.info(
            f"Routing through {bridge_asset} with fees "
            f"{fee_percent(fee_in).normalize()}% and {fee_percent(fee_out).normalize()}%"
        )
        return TwoHopRoute(
            token_in=token_in,
            bridge=bridge_asset,
            token_out=token_out,
            fee_in=fee_in,
            fee_out=fee_out,
        )
