"""Chain access layer.

Provides:
- ChainClient: abstract collaborator the swap engine depends on
- Web3ChainClient: web3.py implementation for live networks
- SimulatedChainClient: deterministic in-memory chain
- Typed contract capabilities (QuoterV2, ERC20Token, SwapRouter)
"""

from tokenswap.chain.base import (
    CallReverted,
    ChainClient,
    SubmissionError,
    TransactionReverted,
    TxReceipt,
)
from tokenswap.chain.contracts import (
    Approvable,
    ERC20Token,
    FeeQuotable,
    QuoterV2,
    SwapRouter,
    Transferable,
)
from tokenswap.chain.encoding import decode_path, encode_path
from tokenswap.chain.simulated import SimulatedChainClient
from tokenswap.chain.web3_client import Web3ChainClient

__all__ = [
    # Client interface
    "ChainClient",
    "CallReverted",
    "SubmissionError",
    "TransactionReverted",
    "TxReceipt",
    "SimulatedChainClient",
    "Web3ChainClient",
    # Capabilities
    "FeeQuotable",
    "Approvable",
    "Transferable",
    "QuoterV2",
    "ERC20Token",
    "SwapRouter",
    # Encoding
    "encode_path",
    "decode_path",
]
