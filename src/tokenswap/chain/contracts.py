"""Typed contract capabilities implemented against a ChainClient.

Each contract role the engine uses gets one small interface:
- FeeQuotable: read-only exact-input quotes at a given fee tier
- Approvable: ERC-20 approvals
- Transferable: ERC-20 balances and transfers

The concrete classes below bind those interfaces to ABI calls once, so the
rest of the code never builds loosely-typed contract calls itself.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from tokenswap.chain.abi import ERC20_ABI, QUOTER_V2_ABI, SWAP_ROUTER_ABI
from tokenswap.chain.base import ChainClient
from tokenswap.chain.encoding import encode_path

logger = logging.getLogger(__name__)


class FeeQuotable(ABC):
    """Something that can quote an exact-input swap through one pool."""

    @abstractmethod
    async def quote_exact_input_single(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> int:
        """
        Simulate an exact-input swap.

        Returns:
            Expected output in token_out smallest units

        Raises:
            CallReverted: If the pool does not exist or rejects the amount
        """
        pass


class Approvable(ABC):
    """ERC-20 approval capability."""

    @abstractmethod
    async def approve(self, spender: str, amount: int, gas_limit: Optional[int] = None) -> str:
        """Submit an approval; returns the transaction hash."""
        pass


class Transferable(ABC):
    """ERC-20 balance and transfer capability."""

    @abstractmethod
    async def balance_of(self, owner: str) -> int:
        pass

    @abstractmethod
    async def decimals(self) -> int:
        pass

    @abstractmethod
    async def transfer(self, to: str, amount: int, gas_limit: Optional[int] = None) -> str:
        """Submit a transfer; returns the transaction hash."""
        pass


class QuoterV2(FeeQuotable):
    """Uniswap V3 QuoterV2 contract."""

    def __init__(self, client: ChainClient, address: str):
        self.client = client
        self.address = address

    async def quote_exact_input_single(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> int:
        params = {
            "tokenIn": token_in,
            "tokenOut": token_out,
            "amountIn": amount_in,
            "fee": fee,
            "sqrtPriceLimitX96": 0,
        }
        result = await self.client.simulate_call(
            self.address, QUOTER_V2_ABI, "quoteExactInputSingle", (params,)
        )
        # (amountOut, sqrtPriceX96After, initializedTicksCrossed, gasEstimate)
        if isinstance(result, (list, tuple)):
            return int(result[0])
        return int(result)


class ERC20Token(Approvable, Transferable):
    """ERC-20 token bound to a chain client."""

    def __init__(self, client: ChainClient, address: str):
        self.client = client
        self.address = address

    async def balance_of(self, owner: str) -> int:
        return await self.client.read_balance(self.address, owner)

    async def decimals(self) -> int:
        return await self.client.read_decimals(self.address)

    async def symbol(self) -> str:
        return await self.client.simulate_call(self.address, ERC20_ABI, "symbol")

    async def approve(self, spender: str, amount: int, gas_limit: Optional[int] = None) -> str:
        logger.debug(f"approve({spender}, {amount}) on {self.address}")
        return await self.client.send_transaction(
            self.address, ERC20_ABI, "approve", (spender, amount), gas_limit=gas_limit
        )

    async def transfer(self, to: str, amount: int, gas_limit: Optional[int] = None) -> str:
        logger.debug(f"transfer({to}, {amount}) on {self.address}")
        return await self.client.send_transaction(
            self.address, ERC20_ABI, "transfer", (to, amount), gas_limit=gas_limit
        )


class SwapRouter:
    """Uniswap V3 SwapRouter submission calls."""

    def __init__(self, client: ChainClient, address: str):
        self.client = client
        self.address = address

    async def exact_input_single(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        recipient: str,
        deadline: int,
        amount_in: int,
        amount_out_minimum: int,
        gas_limit: int,
    ) -> str:
        """Swap through one pool; returns the transaction hash."""
        params = {
            "tokenIn": token_in,
            "tokenOut": token_out,
            "fee": fee,
            "recipient": recipient,
            "deadline": deadline,
            "amountIn": amount_in,
            "amountOutMinimum": amount_out_minimum,
            "sqrtPriceLimitX96": 0,
        }
        return await self.client.send_transaction(
            self.address, SWAP_ROUTER_ABI, "exactInputSingle", (params,), gas_limit=gas_limit
        )

    async def exact_input(
        self,
        tokens: list[str],
        fees: list[int],
        recipient: str,
        deadline: int,
        amount_in: int,
        amount_out_minimum: int,
        gas_limit: int,
    ) -> str:
        """Swap along an encoded multi-pool path; returns the transaction hash."""
        params = {
            "path": encode_path(tokens, fees),
            "recipient": recipient,
            "deadline": deadline,
            "amountIn": amount_in,
            "amountOutMinimum": amount_out_minimum,
        }
        return await self.client.send_transaction(
            self.address, SWAP_ROUTER_ABI, "exactInput", (params,), gas_limit=gas_limit
        )
