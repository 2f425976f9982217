"""Fee-tier discovery.

Pool existence is inferred from simulation: a minimal exact-input quote
that does not revert means a pool with liquidity exists at that tier.
"""

import asyncio
import logging
from typing import Iterable, Optional

from tokenswap.chain.base import CallReverted
from tokenswap.chain.contracts import FeeQuotable

logger = logging.getLogger(__name__)

# Smallest amount that still exercises the pool
PROBE_AMOUNT = 1


class FeeTierProber:
    """Finds the cheapest fee tier with a working pool for a token pair."""

    def __init__(self, quoter: FeeQuotable, parallel: bool = False):
        """Initialize prober.

        Args:
            quoter: Read-only quote capability
            parallel: Simulate all candidates concurrently. The lowest
                successful fee still wins, regardless of response order.
        """
        self.quoter = quoter
        self.parallel = parallel

    async def _simulates(self, token_in: str, token_out: str, fee: int) -> bool:
        try:
            await self.quoter.quote_exact_input_single(token_in, token_out, fee, PROBE_AMOUNT)
            return True
        except CallReverted as e:
            logger.debug(f"No pool {token_in} -> {token_out} at fee {fee}: {e.reason}")
            return False

    async def probe(
        self,
        token_in: str,
        token_out: str,
        candidates: Iterable[int],
    ) -> Optional[int]:
        """
        Find the lowest fee tier that simulates without reverting.

        Args:
            token_in: Input token address
            token_out: Output token address
            candidates: Fee tiers to try

        Returns:
            Fee tier, or None if every candidate reverts
        """
        ordered = sorted(set(candidates))

        if self.parallel:
            results = await asyncio.gather(
                *(self._simulates(token_in, token_out, fee) for fee in ordered)
            )
            found = next((fee for fee, ok in zip(ordered, results) if ok), None)
        else:
            found = None
            for fee in ordered:
                if await self._simulates(token_in, token_out, fee):
                    found = fee
                    break

        if found is None:
            logger.debug(f"No fee tier found for {token_in} -> {token_out} (tried {ordered})")
        else:
            logger.debug(f"Fee tier {found} found for {token_in} -> {token_out}")
        return found
