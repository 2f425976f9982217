"""Utility modules."""

from tokenswap.utils.locks import (
    LockTimeoutError,
    WalletLock,
    clear_wallet_locks,
    get_wallet_lock,
    wallet_lock,
)

__all__ = [
    "WalletLock",
    "wallet_lock",
    "get_wallet_lock",
    "clear_wallet_locks",
    "LockTimeoutError",
]
