"""Swap engine data model."""

import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, getcontext, localcontext
from enum import Enum
from typing import Optional, Union

FEE_DENOMINATOR = 1_000_000  # fee tiers are in hundredths of a basis point


def fee_percent(fee: int) -> Decimal:
    """Fee tier as a percentage (500 -> 0.05)."""
    return Decimal(fee) / Decimal(FEE_DENOMINATOR) * 100


def _exact_context(digits: int):
    """Decimal context wide enough to hold `digits` significant digits unrounded."""
    context = getcontext().copy()
    context.prec = max(context.prec, digits)
    return localcontext(context)


def to_smallest_unit(amount: Union[str, Decimal, int], decimals: int) -> int:
    """Convert a human amount to integer smallest units, exactly.

    Raises:
        ValueError: If the amount is negative, malformed, or has more
            fractional digits than the token supports
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")

    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    if value < 0:
        raise ValueError(f"Amount must not be negative: {amount}")

    digits = value.as_tuple().digits
    with _exact_context(len(digits) + abs(decimals)):
        scaled = value.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"Amount {amount} has more than {decimals} decimal places")
        return int(scaled)


def parse_amount(amount: Union[str, Decimal, int]) -> Decimal:
    """Parse a user-supplied amount, requiring a positive finite number."""
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise ValueError(f"Amount must be a positive number, got {amount!r}")
    return value


def from_smallest_unit(amount: int, decimals: int) -> Decimal:
    """Convert integer smallest units to a human Decimal."""
    with _exact_context(len(str(abs(amount))) + abs(decimals)):
        return Decimal(amount).scaleb(-decimals)


@dataclass(frozen=True)
class TokenAmount:
    """An exact token amount in smallest units."""

    token: str
    amount: int
    decimals: int

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"Token amount must be >= 0, got {self.amount}")

    @classmethod
    def from_human(cls, token: str, value: Union[str, Decimal, int], decimals: int) -> "TokenAmount":
        return cls(token=token, amount=to_smallest_unit(value, decimals), decimals=decimals)

    @property
    def human(self) -> Decimal:
        return from_smallest_unit(self.amount, self.decimals)

    def __str__(self) -> str:
        with _exact_context(len(str(self.amount)) + self.decimals):
            return f"{self.human.normalize():f}"


class SwapStage(str, Enum):
    """Swap executor state machine."""

    START = "start"
    PRECONDITIONS_CHECKED = "preconditions_checked"
    ROUTE_PLANNED = "route_planned"
    APPROVED = "approved"
    QUOTED = "quoted"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class DirectRoute:
    """Single pool token_in -> token_out."""

    token_in: str
    token_out: str
    fee: int

    is_two_hop = False

    @property
    def tokens(self) -> list[str]:
        return [self.token_in, self.token_out]

    @property
    def fees(self) -> list[int]:
        return [self.fee]

    def describe(self) -> str:
        return f"Direct({self.fee})"


@dataclass(frozen=True)
class TwoHopRoute:
    """Two pools token_in -> bridge -> token_out."""

    token_in: str
    bridge: str
    token_out: str
    fee_in: int
    fee_out: int

    is_two_hop = True

    @property
    def tokens(self) -> list[str]:
        return [self.token_in, self.bridge, self.token_out]

    @property
    def fees(self) -> list[int]:
        return [self.fee_in, self.fee_out]

    def describe(self) -> str:
        return f"TwoHop({self.bridge}, {self.fee_in}, {self.fee_out})"


Route = Union[DirectRoute, TwoHopRoute]


@dataclass
class Quote:
    """Expected and minimum output for a route.

    Computed immediately before submission and never reused.
    """

    route: Route
    amount_in: int
    expected_out: int
    minimum_out: int
    slippage_bps: int
    leg_outputs: list[int] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)


@dataclass
class SwapRequest:
    """One user swap invocation."""

    token_in: str
    amount: Union[str, Decimal]
    wallet: str
    deadline_seconds: Optional[int] = None

    def __post_init__(self):
        if not str(self.amount).strip():
            raise ValueError("Swap amount is required")


@dataclass
class SwapResult:
    """Result of a swap attempt."""

    success: bool
    stage: SwapStage
    token_in: str
    token_out: str
    failed_at: Optional[SwapStage] = None
    amount_in: Optional[Decimal] = None
    route: Optional[Route] = None
    quote: Optional[Quote] = None
    approval_tx_hash: Optional[str] = None
    tx_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    output_balance: Optional[Decimal] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for display."""
        return {
            "success": self.success,
            "stage": self.stage.value,
            "failed_at": self.failed_at.value if self.failed_at else None,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "amount_in": str(self.amount_in) if self.amount_in is not None else None,
            "route": self.route.describe() if self.route else None,
            "expected_out": self.quote.expected_out if self.quote else None,
            "minimum_out": self.quote.minimum_out if self.quote else None,
            "approval_tx_hash": self.approval_tx_hash,
            "tx_hash": self.tx_hash,
            "explorer_url": self.explorer_url,
            "output_balance": str(self.output_balance) if self.output_balance is not None else None,
            "error_kind": self.error_kind,
            "error": self.error,
        }
