"""Abstract chain client interface.

The swap engine never talks to a provider directly. Everything it needs
(read-only simulation, balances, decimals, signed submissions and receipts)
goes through a ChainClient, so the engine runs unchanged against a live
network or the in-memory simulated chain.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)


class CallReverted(Exception):
    """Raised when a call or simulation reverts."""

    def __init__(self, reason: str = "execution reverted"):
        self.reason = reason
        super().__init__(reason)


class TransactionReverted(CallReverted):
    """Raised when a mined transaction has a failed receipt."""

    def __init__(self, tx_hash: str, reason: str = "transaction reverted"):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} failed: {reason}")


class SubmissionError(Exception):
    """Raised when the provider rejects a transaction before it is mined."""

    pass


@dataclass
class TxReceipt:
    """Minimal view of a mined transaction."""

    tx_hash: str
    status: int
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class ChainClient(ABC):
    """Abstract base class for chain access."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Address of the active wallet."""
        pass

    @abstractmethod
    async def simulate_call(
        self,
        contract: str,
        abi: list[dict],
        function: str,
        args: Sequence[Any] = (),
    ) -> Any:
        """
        Execute a read-only call from the active wallet.

        Args:
            contract: Contract address
            abi: ABI containing the function
            function: Function name
            args: Positional arguments

        Returns:
            Decoded return value

        Raises:
            CallReverted: If the call reverts
        """
        pass

    @abstractmethod
    async def read_balance(self, asset: Optional[str], owner: str) -> int:
        """
        Get balance in smallest units.

        Args:
            asset: ERC-20 address, or None for the native gas asset
            owner: Holder address
        """
        pass

    @abstractmethod
    async def read_decimals(self, asset: str) -> int:
        """Get ERC-20 decimals."""
        pass

    @abstractmethod
    async def send_transaction(
        self,
        contract: str,
        abi: list[dict],
        function: str,
        args: Sequence[Any] = (),
        gas_limit: Optional[int] = None,
    ) -> str:
        """
        Sign and submit a contract transaction.

        Returns:
            Transaction hash (0x-prefixed hex)

        Raises:
            SubmissionError: If the transaction cannot be built or is
                rejected by the provider
        """
        pass

    @abstractmethod
    async def send_value(self, to: str, amount: int, gas_limit: int = 21_000) -> str:
        """Sign and submit a native-asset transfer."""
        pass

    @abstractmethod
    async def wait_for_confirmation(
        self,
        tx_hash: str,
        timeout: Optional[float] = None,
    ) -> TxReceipt:
        """
        Block until the transaction is mined.

        Args:
            tx_hash: Transaction hash
            timeout: Maximum seconds to wait (None = wait forever)

        Raises:
            TransactionReverted: If the receipt reports failure
            TimeoutError: If a timeout is given and exceeded
        """
        pass
