"""Wallet services built on the chain client."""

from tokenswap.services.balance_service import BalanceService, TokenBalance
from tokenswap.services.transfer_service import TransferResult, TransferService

__all__ = [
    "BalanceService",
    "TokenBalance",
    "TransferService",
    "TransferResult",
]
