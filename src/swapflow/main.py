"""Main entry point - runs the proxy or a swap from the command line."""

import argparse
import asyncio
import logging
import sys
from typing import Optional

import uvicorn

from swapflow.config import get_settings
from swapflow.engine.session import SwapSession
from swapflow.engine.state import TradeState, TxStatus
from swapflow.errors import PreconditionError, SwapError
from swapflow.gateway import HttpAggregatorGateway
from swapflow.wallet.base import WalletSigner
from swapflow.wallet.dry_run import DryRunWalletSigner

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_signer(dry_run: bool) -> WalletSigner:
    """Dry-run wallet, or the local-key web3 wallet from settings."""
    if dry_run:
        return DryRunWalletSigner()
    if not get_settings().has_wallet:
        raise PreconditionError("WALLET_PRIVATE_KEY is not set; use --dry-run to simulate")

    from swapflow.wallet.web3_signer import Web3WalletSigner

    return Web3WalletSigner()


def _log_state(state: TradeState) -> None:
    logger.debug(f"State: {state.snapshot()}")


async def _open_session(args, signer: WalletSigner) -> SwapSession:
    # One-shot input, so no quiet period is needed
    session = SwapSession(HttpAggregatorGateway(), signer, debounce_seconds=0)
    session.state.subscribe(_log_state)
    try:
        await session.load_tokens(select_defaults=False)
        session.select_source_token(args.src)
        session.select_dest_token(args.dst)
        session.set_source_amount(args.amount)
        await session.wait_for_quote()
    except BaseException:
        await session.close()
        raise
    return session


def _print_quote(state: TradeState) -> None:
    if state.dest_amount:
        print(
            f"{state.source_amount} {state.source_token} -> "
            f"{state.dest_amount} {state.dest_token}"
        )
    else:
        print(f"No quote ({state.quote_status.value}): {state.last_error or 'invalid amount'}")


async def _print_balance(session: SwapSession) -> None:
    balance = await session.source_balance()
    if balance is not None:
        print(f"Balance: {balance} {session.state.source_token}")


async def run_tokens(args) -> int:
    gateway = HttpAggregatorGateway()
    try:
        tokens = await gateway.get_tokens()
    finally:
        await gateway.close()

    for token in sorted(tokens, key=lambda t: t.symbol.upper()):
        if args.symbol and token.symbol.upper() != args.symbol.upper():
            continue
        print(f"{token.symbol:<12} {token.decimals:>3}  {token.address}  {token.name}")
    return 0


async def run_quote(args) -> int:
    # Quoting never signs; the configured wallet is only read for its balance
    session = await _open_session(args, create_signer(not get_settings().has_wallet))
    try:
        _print_quote(session.state)
        await _print_balance(session)
        return 0 if session.state.dest_amount else 1
    finally:
        await session.close()


async def run_swap(args) -> int:
    settings = get_settings()
    session = await _open_session(args, create_signer(args.dry_run))
    try:
        _print_quote(session.state)
        await _print_balance(session)
        try:
            status = await session.confirm()
        except PreconditionError as e:
            print(f"Cannot swap: {e}")
            return 1

        state = session.state
        if state.tx_hash:
            print(f"Transaction: {settings.explorer_tx_url(state.tx_hash)}")
        if status == TxStatus.CONFIRMED:
            print("Swap confirmed")
            return 0
        print(f"Swap failed: {state.last_error}")
        return 1
    finally:
        await session.close()


def run_server() -> None:
    """Run the FastAPI proxy."""
    settings = get_settings()
    logger.info(f"Starting proxy on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "swapflow.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="swapflow", description="Swap tokens through 1inch")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the 1inch proxy server")

    tokens = subparsers.add_parser("tokens", help="List tokens on the configured chain")
    tokens.add_argument("--symbol", type=str, help="Only show this symbol")

    for name, help_text in (("quote", "Get a quote"), ("swap", "Quote and execute a swap")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("amount", type=str, help="Amount of the source token, e.g. 1.5")
        sub.add_argument("src", type=str, help="Source token symbol or address")
        sub.add_argument("dst", type=str, help="Destination token symbol or address")
        if name == "swap":
            sub.add_argument(
                "--dry-run", action="store_true", help="Simulate signing and confirmation"
            )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().debug)

    if args.command == "serve":
        run_server()
        return 0

    commands = {"tokens": run_tokens, "quote": run_quote, "swap": run_swap}
    try:
        return asyncio.run(commands[args.command](args))
    except SwapError as e:
        print(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        return 130


if __name__ == "__main__":
    sys.exit(main())
