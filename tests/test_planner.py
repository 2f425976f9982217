"""Tests for route planning."""

import pytest

from tokenswap.config import DEFAULT_FEE_TIERS
from tokenswap.errors import NoLiquidityError
from tokenswap.swap.models import DirectRoute, TwoHopRoute
from tokenswap.swap.planner import RoutePlanner
from tokenswap.swap.prober import FeeTierProber

from tests.conftest import TOKEN, USDT, WETH
from tests.test_prober import FakeQuoter


def make_planner(pools, parallel=False):
    quoter = FakeQuoter(pools)
    return RoutePlanner(FeeTierProber(quoter, parallel=parallel), DEFAULT_FEE_TIERS), quoter


class TestRoutePlanner:
    """Tests for RoutePlanner."""

    @pytest.mark.asyncio
    async def test_direct_route(self):
        planner, _ = make_planner([(TOKEN, USDT, 500)])

        route = await planner.plan(TOKEN, USDT, WETH)

        assert route == DirectRoute(token_in=TOKEN, token_out=USDT, fee=500)

    @pytest.mark.asyncio
    async def test_direct_preferred_over_cheaper_two_hop(self):
        """Test that a working direct pool always wins."""
        planner, quoter = make_planner([
            (TOKEN, USDT, 10000),
            (TOKEN, WETH, 100),
            (WETH, USDT, 100),
        ])

        route = await planner.plan(TOKEN, USDT, WETH)

        assert route == DirectRoute(token_in=TOKEN, token_out=USDT, fee=10000)
        assert all(c[1] != WETH and c[0] != WETH for c in quoter.calls)

    @pytest.mark.asyncio
    async def test_two_hop_fallback(self):
        """No direct pool, bridge legs at 3000 and 500."""
        planner, _ = make_planner([(TOKEN, WETH, 3000), (WETH, USDT, 500)])

        route = await planner.plan(TOKEN, USDT, WETH)

        assert isinstance(route, TwoHopRoute)
        assert route.describe() == f"TwoHop({WETH}, 3000, 500)"

    @pytest.mark.asyncio
    async def test_two_hop_fallback_parallel(self):
        planner, _ = make_planner(
            [(TOKEN, WETH, 3000), (TOKEN, WETH, 10000), (WETH, USDT, 500)],
            parallel=True,
        )

        route = await planner.plan(TOKEN, USDT, WETH)

        assert route == TwoHopRoute(TOKEN, WETH, USDT, fee_in=3000, fee_out=500)

    @pytest.mark.asyncio
    async def test_no_pools_anywhere(self):
        planner, _ = make_planner([])

        with pytest.raises(NoLiquidityError) as exc_info:
            await planner.plan(TOKEN, USDT, WETH)

        assert exc_info.value.kind == "NoLiquidity"
        assert exc_info.value.stage == "route_planned"

    @pytest.mark.asyncio
    async def test_one_bridge_leg_missing(self):
        planner, _ = make_planner([(TOKEN, WETH, 3000)])

        with pytest.raises(NoLiquidityError, match="bridge leg missing"):
            await planner.plan(TOKEN, USDT, WETH)

    @pytest.mark.asyncio
    async def test_bridge_as_input_skips_two_hop(self):
        """Test that no bridge legs are probed when the input is the bridge."""
        planner, quoter = make_planner([])

        with pytest.raises(NoLiquidityError):
            await planner.plan(WETH, USDT, WETH)

        assert {(c[0], c[1]) for c in quoter.calls} == {(WETH, USDT)}

    @pytest.mark.asyncio
    async def test_identical_tokens_rejected(self):
        planner, quoter = make_planner([])

        with pytest.raises(ValueError):
            await planner.plan(USDT, USDT, WETH)

        assert quoter.calls == []

    @pytest.mark.asyncio
    async def test_custom_candidates(self):
        planner, quoter = make_planner([(TOKEN, USDT, 2500)])

        route = await planner.plan(TOKEN, USDT, WETH, candidates=[2500, 100])

        assert route.fee == 2500
        assert [c[2] for c in quoter.calls] == [100, 2500]
