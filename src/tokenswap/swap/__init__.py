"""Swap engine: fee-tier probing, route planning, quoting and execution."""

from tokenswap.swap.executor import SwapExecutor
from tokenswap.swap.models import (
    DirectRoute,
    Quote,
    Route,
    SwapRequest,
    SwapResult,
    SwapStage,
    TokenAmount,
    TwoHopRoute,
)
from tokenswap.swap.planner import RoutePlanner
from tokenswap.swap.prober import FeeTierProber
from tokenswap.swap.quoter import QuoteEngine, minimum_out

__all__ = [
    "SwapExecutor",
    "RoutePlanner",
    "FeeTierProber",
    "QuoteEngine",
    "minimum_out",
    "DirectRoute",
    "TwoHopRoute",
    "Route",
    "Quote",
    "SwapRequest",
    "SwapResult",
    "SwapStage",
    "TokenAmount",
]
