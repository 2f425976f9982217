"""Wallet transfers of the native asset or ERC-20 tokens.

Transfer flow:
1. Validate recipient address and amount
2. Check native balance covers the transfer gas reserve
3. Check the wallet holds the amount
4. Sign and broadcast
5. Wait for confirmation
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from web3 import Web3

from tokenswap.chain.base import CallReverted, ChainClient, SubmissionError
from tokenswap.chain.contracts import ERC20Token
from tokenswap.config import SwapConfig
from tokenswap.errors import (
    InsufficientGasError,
    InsufficientTokenBalanceError,
    MetadataUnavailableError,
    SwapError,
    TransferFailedError,
)
from tokenswap.swap.models import SwapStage, TokenAmount, parse_amount, to_smallest_unit
from tokenswap.utils.locks import WalletLock

logger = logging.getLogger(__name__)

NATIVE_TRANSFER_GAS = 21_000
TOKEN_TRANSFER_GAS = 100_000


@dataclass
class TransferResult:
    """Result of a transfer."""
    success: bool
    token: Optional[str]           # None for the native asset
    to: str
    amount: Decimal
    tx_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None


class TransferService:
    """Sends assets from the active wallet."""

    def __init__(self, client: ChainClient, config: SwapConfig):
        self.client = client
        self.config = config

    def _format_native(self, amount: int) -> str:
        return str(TokenAmount(self.config.native_symbol, amount, self.config.native_decimals))

    async def transfer(
        self,
        token: Optional[str],
        to: str,
        amount: Union[str, Decimal],
    ) -> TransferResult:
        """
        Transfer native asset (token=None) or an ERC-20 token.

        Returns:
            TransferResult with the transaction hash and explorer link

        Raises:
            ValueError: For an invalid recipient or amount, before any chain access
        """
        if not Web3.is_address(to):
            raise ValueError(f"Invalid recipient address: {to}")
        if token is not None and not Web3.is_address(token):
            raise ValueError(f"Invalid token address: {token}")
        human_amount = parse_amount(amount)

        result = TransferResult(success=False, token=token, to=to, amount=human_amount)

        async with WalletLock(self.client.address, operation="transfer"):
            try:
                tx_hash = await self._send(token, to, human_amount)
                result.tx_hash = tx_hash
                result.explorer_url = self.config.tx_url(tx_hash)

                try:
                    await self.client.wait_for_confirmation(tx_hash)
                except CallReverted as e:
                    raise TransferFailedError(f"Transfer reverted: {e.reason}", stage=SwapStage.CONFIRMED.value) from e

                result.success = True
                logger.info(f"Transfer confirmed: {result.explorer_url}")

            except SwapError as e:
                result.error_kind = e.kind
                result.error = str(e)
                logger.error(f"Transfer failed [{e.kind}]: {e}")

        return result

    async def _send(self, token: Optional[str], to: str, human_amount: Decimal) -> str:
        wallet = self.client.address
        native = await self.client.read_balance(None, wallet)
        reserve = self.config.min_transfer_gas_reserve

        if native < reserve:
            raise InsufficientGasError(
                f"Insufficient {self.config.native_symbol} for gas: have {self._format_native(native)}, "
                f"need at least {self._format_native(reserve)}",
                stage=SwapStage.PRECONDITIONS_CHECKED.value,
            )

        try:
            if token is None:
                amount = to_smallest_unit(human_amount, self.config.native_decimals)
                if native - reserve < amount:
                    raise InsufficientTokenBalanceError(
                        f"Insufficient {self.config.native_symbol} balance: have {self._format_native(native)}, "
                        f"requested {self._format_native(amount)} plus gas reserve",
                        stage=SwapStage.PRECONDITIONS_CHECKED.value,
                    )
                logger.info(f"Sending {human_amount} {self.config.native_symbol} to {to}")
                return await self.client.send_value(to, amount, gas_limit=NATIVE_TRANSFER_GAS)

            erc20 = ERC20Token(self.client, token)
            try:
                decimals = await erc20.decimals()
            except CallReverted as e:
                raise MetadataUnavailableError(
                    f"Could not read decimals for {token}: {e.reason}",
                    stage=SwapStage.PRECONDITIONS_CHECKED.value,
                ) from e

            amount = TokenAmount.from_human(token, human_amount, decimals)
            balance = await erc20.balance_of(wallet)
            if balance < amount.amount:
                raise InsufficientTokenBalanceError(
                    f"Insufficient token balance: have {TokenAmount(token, balance, decimals)}, "
                    f"requested {amount}",
                    stage=SwapStage.PRECONDITIONS_CHECKED.value,
                )

            logger.info(f"Sending {human_amount} of {token} to {to}")
            return await erc20.transfer(to, amount.amount, gas_limit=TOKEN_TRANSFER_GAS)

        except SubmissionError as e:
            raise TransferFailedError(f"Transfer could not be submitted: {e}", stage=SwapStage.SUBMITTED.value) from e
