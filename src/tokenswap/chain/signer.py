"""Wallet key loading.

Supports a raw hex private key or a BIP-39 seed phrase with standard
BIP-44 Ethereum derivation (m/44'/60'/0'/0/index), Trust Wallet compatible.
"""

import logging
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)


def derive_private_key(seed_phrase: str, index: int = 0) -> bytes:
    """Derive EVM private key from seed phrase."""
    from bip_utils import (
        Bip39SeedGenerator, Bip44, Bip44Coins, Bip44Changes
    )

    seed = Bip39SeedGenerator(seed_phrase).Generate()
    bip44 = Bip44.FromSeed(seed, Bip44Coins.ETHEREUM)
    account = bip44.Purpose().Coin().Account(0).Change(Bip44Changes.CHAIN_EXT)
    return account.AddressIndex(index).PrivateKey().Raw().ToBytes()


def load_account(
    private_key: Optional[str] = None,
    seed_phrase: Optional[str] = None,
    index: int = 0,
) -> LocalAccount:
    """Build a signing account from whichever secret is configured.

    Raises:
        ValueError: If neither secret is configured
    """
    if private_key:
        return Account.from_key(private_key)

    if seed_phrase:
        if len(seed_phrase.split()) < 12:
            raise ValueError("WALLET_SEED_PHRASE must have at least 12 words")
        account = Account.from_key(derive_private_key(seed_phrase, index))
        logger.debug(f"Derived wallet {account.address} at index {index}")
        return account

    raise ValueError("PRIVATE_KEY or WALLET_SEED_PHRASE not configured")
