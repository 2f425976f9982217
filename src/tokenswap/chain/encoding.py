"""Uniswap V3 path encoding.

A multi-hop path is the packed concatenation
``token0 (20 bytes) | fee0 (3 bytes) | token1 | fee1 | token2 ...``.
"""

from typing import Sequence

from eth_abi.packed import encode_packed
from web3 import Web3

ADDRESS_SIZE = 20
FEE_SIZE = 3


def encode_path(tokens: Sequence[str], fees: Sequence[int]) -> bytes:
    """Encode a swap path for ``exactInput``.

    Args:
        tokens: Token addresses in swap order
        fees: Fee tier of each hop (one fewer than tokens)
    """
    if len(tokens) < 2 or len(fees) != len(tokens) - 1:
        raise ValueError(f"Path needs n tokens and n-1 fees, got {len(tokens)} and {len(fees)}")

    types: list[str] = []
    values: list = []
    for i, token in enumerate(tokens):
        types.append("address")
        values.append(Web3.to_checksum_address(token))
        if i < len(fees):
            types.append("uint24")
            values.append(int(fees[i]))

    return encode_packed(types, values)


def decode_path(path: bytes) -> tuple[list[str], list[int]]:
    """Split an encoded path back into checksum addresses and fees."""
    step = ADDRESS_SIZE + FEE_SIZE
    if len(path) < ADDRESS_SIZE or (len(path) - ADDRESS_SIZE) % step != 0:
        raise ValueError(f"Malformed path of {len(path)} bytes")

    tokens: list[str] = []
    fees: list[int] = []
    offset = 0
    while True:
        tokens.append(Web3.to_checksum_address("0x" + path[offset:offset + ADDRESS_SIZE].hex()))
        offset += ADDRESS_SIZE
        if offset == len(path):
            break
        fees.append(int.from_bytes(path[offset:offset + FEE_SIZE], "big"))
        offset += FEE_SIZE

    return tokens, fees
