"""Concurrency control for wallet operations.

Provides per-wallet locking so that two swaps or transfers from the same
wallet never interleave their approval, submission and nonce usage.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

logger = logging.getLogger(__name__)

# Global lock registry: lowercased wallet address -> asyncio.Lock
_wallet_locks: dict[str, asyncio.Lock] = {}


def get_wallet_lock(wallet: str) -> asyncio.Lock:
    """Get or create the lock for a wallet address.

    Args:
        wallet: Wallet address (case-insensitive)

    Returns:
        asyncio.Lock for the wallet
    """
    return _wallet_locks.setdefault(wallet.lower(), asyncio.Lock())


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


class WalletLock:
    """Context manager for exclusive use of a wallet.

    Example:
        async with WalletLock(wallet, operation="swap"):
            # Check balances, approve, submit
            ...
    """

    def __init__(
        self,
        wallet: str,
        timeout: Optional[float] = None,
        operation: str = "wallet_operation",
    ):
        """Initialize the lock.

        Args:
            wallet: Wallet address
            timeout: Maximum time to wait for lock (None = wait forever)
            operation: Description of the operation for logging
        """
        self.wallet = wallet
        self.timeout = timeout
        self.operation = operation
        self._lock: Optional[asyncio.Lock] = None
        self._acquired = False

    async def __aenter__(self) -> "WalletLock":
        """Acquire the lock."""
        self._lock = get_wallet_lock(self.wallet)

        try:
            if self.timeout:
                await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
            else:
                await self._lock.acquire()
            self._acquired = True
            logger.debug(f"Lock acquired for wallet {self.wallet}: {self.operation}")
            return self

        except asyncio.TimeoutError:
            logger.warning(
                f"Lock timeout for wallet {self.wallet} after {self.timeout}s: {self.operation}"
            )
            raise LockTimeoutError(
                f"Could not acquire lock for wallet {self.wallet} within {self.timeout}s"
            )

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Release the lock."""
        if self._acquired and self._lock:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Lock released for wallet {self.wallet}: {self.operation}")
        return False


@asynccontextmanager
async def wallet_lock(
    wallet: str,
    timeout: Optional[float] = None,
    operation: str = "wallet_operation",
):
    """Functional form of WalletLock.

    Example:
        async with wallet_lock(address, operation="transfer"):
            ...
    """
    async with WalletLock(wallet, timeout=timeout, operation=operation):
        yield


def clear_wallet_locks() -> None:
    """Clear all wallet locks (useful for testing)."""
    _wallet_locks.clear()
