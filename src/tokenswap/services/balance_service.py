"""Wallet balance lookup.

Reads the native balance and any number of ERC-20 balances concurrently.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from tokenswap.chain.base import ChainClient
from tokenswap.chain.contracts import ERC20Token
from tokenswap.swap.models import from_smallest_unit

logger = logging.getLogger(__name__)

UNKNOWN_SYMBOL = "UNKNOWN"


@dataclass
class TokenBalance:
    """Balance of one asset held by the wallet."""
    symbol: str
    address: Optional[str]         # None for the native asset
    raw: int                       # Smallest units
    decimals: Optional[int]        # None when metadata is unreadable
    amount: Optional[Decimal]      # Human units, None without decimals

    @property
    def is_native(self) -> bool:
        return self.address is None

    def __str__(self) -> str:
        if self.amount is None:
            return f"{self.raw} (raw)"
        return f"{self.amount.normalize():f}"


class BalanceService:
    """Reads wallet balances through a chain client."""

    def __init__(self, client: ChainClient, native_symbol: str = "ETH", native_decimals: int = 18):
        self.client = client
        self.native_symbol = native_symbol
        self.native_decimals = native_decimals

    async def get_native_balance(self, owner: Optional[str] = None) -> TokenBalance:
        raw = await self.client.read_balance(None, owner or self.client.address)
        return TokenBalance(
            symbol=self.native_symbol,
            address=None,
            raw=raw,
            decimals=self.native_decimals,
            amount=from_smallest_unit(raw, self.native_decimals),
        )

    async def get_token_balance(self, token_address: str, owner: Optional[str] = None) -> TokenBalance:
        """
        Get one ERC-20 balance.

        Symbol and decimals are best effort: a token that does not expose
        them is reported as UNKNOWN with its raw balance only.
        """
        token = ERC20Token(self.client, token_address)
        raw, symbol, decimals = await asyncio.gather(
            token.balance_of(owner or self.client.address),
            token.symbol(),
            token.decimals(),
            return_exceptions=True,
        )

        if isinstance(raw, BaseException):
            raise raw

        if isinstance(symbol, BaseException) or isinstance(decimals, BaseException):
            failure = symbol if isinstance(symbol, BaseException) else decimals
            logger.warning(f"Could not read metadata for {token_address}: {failure}")
            return TokenBalance(
                symbol=UNKNOWN_SYMBOL,
                address=token_address,
                raw=raw,
                decimals=None,
                amount=None,
            )

        return TokenBalance(
            symbol=symbol or UNKNOWN_SYMBOL,
            address=token_address,
            raw=raw,
            decimals=decimals,
            amount=from_smallest_unit(raw, decimals),
        )

    async def get_balances(
        self,
        tokens: Iterable[str] = (),
        include_zero: bool = False,
        owner: Optional[str] = None,
    ) -> list[TokenBalance]:
        """
        Get the native balance followed by each token balance.

        Args:
            tokens: ERC-20 addresses to read
            include_zero: Keep tokens with a zero balance
            owner: Holder address (defaults to the active wallet)

        Returns:
            Native balance first, then tokens in the order given
        """
        results = await asyncio.gather(
            self.get_native_balance(owner),
            *(self.get_token_balance(t, owner) for t in tokens),
        )
        native, token_balances = results[0], results[1:]
        if not include_zero:
            token_balances = [b for b in token_balances if b.raw > 0]
        return [native, *token_balances]
