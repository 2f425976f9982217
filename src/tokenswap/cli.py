"""Command line interface.

Usage:
    tokenswap swap TOKEN AMOUNT
    tokenswap balance [TOKEN ...]
    tokenswap transfer TOKEN|native TO AMOUNT
    tokenswap config
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from tokenswap import __version__
from tokenswap.chain.signer import load_account
from tokenswap.chain.web3_client import Web3ChainClient
from tokenswap.config import Settings, get_settings
from tokenswap.services.balance_service import BalanceService
from tokenswap.services.transfer_service import TransferService
from tokenswap.swap.executor import SwapExecutor
from tokenswap.swap.models import SwapRequest

logger = logging.getLogger(__name__)

# Colors for output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
RESET = "\033[0m"
CHECK = "✓"
CROSS = "✗"

NATIVE_ALIASES = {"native", "eth", "0x0000000000000000000000000000000000000000"}


def print_status(name: str, success: bool, message: str = ""):
    """Print status with color."""
    if success:
        print(f"  {GREEN}{CHECK}{RESET} {name}" + (f" - {message}" if message else ""))
    else:
        print(f"  {RED}{CROSS}{RESET} {name}" + (f" - {message}" if message else ""))


def print_field(name: str, value) -> None:
    print(f"    {YELLOW}{name}:{RESET} {value}")


def configure_logging(settings: Settings) -> None:
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_client(settings: Settings) -> Web3ChainClient:
    """Create a signing chain client for the configured network."""
    if not settings.has_wallet:
        raise ValueError("No wallet configured. Set PRIVATE_KEY or WALLET_SEED_PHRASE.")
    account = load_account(
        private_key=settings.private_key,
        seed_phrase=settings.wallet_seed_phrase,
        index=settings.wallet_index,
    )
    chain = settings.get_chain()
    return Web3ChainClient(chain.rpc_url, account, chain_id=chain.chain_id)


async def cmd_swap(settings: Settings, args: argparse.Namespace) -> int:
    client = build_client(settings)
    config = settings.swap_config()
    chain = settings.get_chain()
    executor = SwapExecutor(client, config)

    print(f"\nSwapping {args.amount} of {args.token} to {chain.stable_symbol} on {chain.name}...")
    result = await executor.execute_swap(
        SwapRequest(token_in=args.token, amount=args.amount, wallet=client.address)
    )

    if result.success:
        print_status("Swap confirmed", True, result.route.describe())
        print_field("Transaction", result.explorer_url)
        print_field("Minimum received", result.quote.minimum_out)
        if result.output_balance is not None:
            print_field(f"{chain.stable_symbol} balance", f"{result.output_balance.normalize():f}")
        return 0

    print_status(f"Swap failed ({result.error_kind})", False, result.error)
    if result.tx_hash:
        print_field("Transaction", result.explorer_url)
    return 1


async def cmd_balance(settings: Settings, args: argparse.Namespace) -> int:
    client = build_client(settings)
    chain = settings.get_chain()
    service = BalanceService(client, native_symbol=chain.native_symbol, native_decimals=chain.native_decimals)

    tokens = list(args.tokens) or [chain.stable_asset_address]
    balances = await service.get_balances(tokens, include_zero=args.all)

    print(f"\nBalances for {client.address} on {chain.name}:")
    for balance in balances:
        label = balance.symbol if balance.is_native else f"{balance.symbol} ({balance.address})"
        print_field(label, balance)
    return 0


async def cmd_transfer(settings: Settings, args: argparse.Namespace) -> int:
    client = build_client(settings)
    service = TransferService(client, settings.swap_config())

    token = None if args.token.lower() in NATIVE_ALIASES else args.token
    result = await service.transfer(token, args.to, args.amount)

    if result.success:
        print_status("Transfer confirmed", True, f"{result.amount} to {result.to}")
        print_field("Transaction", result.explorer_url)
        return 0

    print_status(f"Transfer failed ({result.error_kind})", False, result.error)
    return 1


def cmd_config(settings: Settings, args: argparse.Namespace) -> int:
    print(json.dumps(settings.get_safe_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokenswap",
        description="Swap tokens into a stable asset through Uniswap V3",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    swap = subparsers.add_parser("swap", help="Swap a token into the stable asset")
    swap.add_argument("token", help="Input token address")
    swap.add_argument("amount", help="Amount in token units (e.g. 1.5)")

    balance = subparsers.add_parser("balance", help="Show wallet balances")
    balance.add_argument("tokens", nargs="*", help="Token addresses (defaults to the stable asset)")
    balance.add_argument("--all", action="store_true", help="Include zero balances")

    transfer = subparsers.add_parser("transfer", help="Send native asset or tokens")
    transfer.add_argument("token", help="Token address, or 'native'")
    transfer.add_argument("to", help="Recipient address")
    transfer.add_argument("amount", help="Amount in token units")

    subparsers.add_parser("config", help="Show configuration (secrets redacted)")
    return parser


COMMANDS = {
    "swap": cmd_swap,
    "balance": cmd_balance,
    "transfer": cmd_transfer,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        print_status("Invalid configuration", False, str(e))
        return 1

    configure_logging(settings)

    if args.command == "config":
        return cmd_config(settings, args)

    try:
        return asyncio.run(COMMANDS[args.command](settings, args))
    except ValueError as e:
        print_status("Invalid input", False, str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 1


if __name__ == "__main__":
    sys.exit(main())
