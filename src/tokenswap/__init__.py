"""Token swap engine: best-route Uniswap V3 swaps into a stable asset."""

__version__ = "0.1.0"
