"""Swap and transfer failure taxonomy.

Every error is terminal for the current attempt. Each one records the
state-machine stage that failed and, where relevant, the route and fee tier
involved so the failing step can be reconstructed from logs.
"""

from typing import Any, Optional


class SwapError(Exception):
    """Base class for swap failures."""

    kind = "SwapError"

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        route: Optional[Any] = None,
        fee: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.route = route
        self.fee = fee

    def __str__(self) -> str:
        details = []
        if self.stage:
            details.append(f"stage={self.stage}")
        if self.route is not None:
            details.append(f"route={self.route.describe()}")
        if self.fee is not None:
            details.append(f"fee={self.fee}")
        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class InsufficientGasError(SwapError):
    """Native balance is below the gas reserve."""

    kind = "InsufficientGas"


class InsufficientTokenBalanceError(SwapError):
    """Wallet holds less of the input token than requested."""

    kind = "InsufficientTokenBalance"


class MetadataUnavailableError(SwapError):
    """Token decimals could not be read."""

    kind = "MetadataUnavailable"


class NoLiquidityError(SwapError):
    """Neither the direct nor the bridged route has a pool."""

    kind = "NoLiquidity"


class QuoteFailedError(SwapError):
    """A pool proven to exist rejected the real-amount simulation."""

    kind = "QuoteFailed"


class ApprovalFailedError(SwapError):
    """Allowance transaction failed or reverted."""

    kind = "ApprovalFailed"


class SwapRevertedError(SwapError):
    """Submitted swap transaction reverted or could not be sent."""

    kind = "SwapReverted"


class TransferFailedError(SwapError):
    """Wallet transfer could not be submitted or reverted."""

    kind = "TransferFailed"
