"""
Command-line client.

Builds a TradingSession from AppConfig and renders its derived view as
text. Mutating commands go through the same guards as any other caller
and wait for the terminal state before printing the refreshed view.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from .clock import Clock
from .config import AppConfig
from .derived import SessionView, derive
from .errors import AmmTraderError, ConfigurationError, SubmissionRefused
from .journal import TransactionJournal
from .ledger import LocalAccountSigner, NodeSigner, Signer, Web3Ledger
from .session import TradingSession
from .types import OfferedAction, Outcome, PendingTransaction, SessionState, TxStatus

logger = logging.getLogger(__name__)


def setup_logging(
    name: str,
    level: str = "INFO",
    format_str: Optional[str] = None,
) -> logging.Logger:
    """Configure the root handler and return the client's logger."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ConfigurationError(f"LOG_LEVEL {level!r} is not a logging level")

    logging.basicConfig(
        level=numeric,
        format=format_str or "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # web3 and aiohttp log every RPC round trip at DEBUG
    transport_level = logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
    for noisy in ("web3", "aiohttp"):
        logging.getLogger(noisy).setLevel(transport_level)

    return logging.getLogger(name)


# ---- rendering ----


def render_catalog(view: SessionView) -> str:
    if not view.catalog:
        return "No markets loaded"
    lines = []
    for entry in view.catalog:
        marker = "*" if entry.selected else " "
        lines.append(f"{marker} {entry.label}")
    return "\n".join(lines)


def render_view(view: SessionView, config: AppConfig) -> str:
    """Text rendering of one derived view."""
    lines = [
        f"Market #{view.market_id}: {view.question}",
        view.status,
        f"Liquidity  YES {view.liquidity_yes}  NO {view.liquidity_no}",
        f"Price      YES {view.price_yes}  NO {view.price_no}",
        f"Shares     YES {view.shares_yes}  NO {view.shares_no}",
        f"Allowance  {view.allowance}",
        f"Trade      {view.outcome.name} {view.amount_text}",
    ]

    if view.offered_action != OfferedAction.NONE:
        state = "" if view.action_enabled else " (unavailable)"
        lines.append(f"Action     {view.action_label}{state}")

    if view.pending is not None:
        lines.append(f"Pending    {view.pending.kind.value} {view.pending.status.value}")
    if view.last_tx_hash:
        lines.append(f"View transaction: {config.tx_url(view.last_tx_hash)}")
    if view.last_error:
        lines.append(f"Error: {view.last_error}")
    return "\n".join(lines)


# ---- wiring ----


def build_signer(config: AppConfig) -> Optional[Signer]:
    """Local key if configured, else a node-managed address, else read-only."""
    if config.private_key:
        return LocalAccountSigner(config.private_key)
    if config.signer_address:
        return NodeSigner(config.signer_address)
    return None


def build_ledger(config: AppConfig) -> Web3Ledger:
    return Web3Ledger(
        rpc_url=config.rpc_url,
        token_address=config.token_address,
        market_address=config.market_address,
        signer=build_signer(config),
        chain_id=config.chain_id,
        timeout_seconds=config.rpc_timeout_s,
        receipt_poll_interval_s=config.receipt_poll_interval_s,
    )


def build_session(
    config: AppConfig,
    ledger: Web3Ledger,
    journal: Optional[TransactionJournal] = None,
) -> TradingSession:
    return TradingSession(
        ledger,
        config.token_address,
        config.market_address,
        clock=Clock(config.clock_interval_s),
        journal=journal,
        default_amount=config.default_amount,
        poll_interval_s=config.poll_interval_s,
    )


# ---- commands ----


async def _watch(session: TradingSession, config: AppConfig) -> None:
    """Re-render whenever the view changes, until SIGINT/SIGTERM."""
    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    last = ""

    def on_state(state: SessionState) -> None:
        nonlocal last
        text = render_view(derive(state), config)
        if text != last:
            last = text
            print(text + "\n", flush=True)

    session.subscribe(on_state)
    on_state(session.state)
    await shutdown.wait()
    logger.info("Received shutdown signal")


def _report(tx: PendingTransaction, session: TradingSession, config: AppConfig) -> int:
    print(render_view(session.view(), config))
    return 0 if tx.status == TxStatus.CONFIRMED else 1


async def run_command(args: argparse.Namespace, config: AppConfig) -> int:
    """Run one CLI command against a fresh session. Returns the exit code."""
    journal = TransactionJournal(config.journal_dir) if config.journal_dir else None
    ledger = build_ledger(config)
    session = build_session(config, ledger, journal)

    try:
        await session.start()

        if args.command == "markets":
            print(render_catalog(session.view()))
            return 0

        market_id = getattr(args, "market", 0)
        if market_id != session.state.selected_market_id:
            await session.select_market(market_id)

        if args.command == "status":
            print(render_view(session.view(), config))
            return 0

        if args.command == "watch":
            await _watch(session, config)
            return 0

        if args.command == "approve":
            if args.amount is not None:
                session.set_amount(args.amount)
            tx = await session.approve()
            return _report(tx, session, config)

        if args.command == "buy":
            session.set_outcome(Outcome.parse(args.outcome))
            if args.amount is not None:
                session.set_amount(args.amount)
            tx = await session.buy()
            return _report(tx, session, config)

        if args.command == "claim":
            tx = await session.claim()
            return _report(tx, session, config)

        raise ValueError(f"Unknown command {args.command}")

    except SubmissionRefused as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    finally:
        await session.close()
        await ledger.close()
        if journal:
            journal.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ammtrader",
        description="Trade binary prediction markets against an on-chain AMM",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Load settings from this .env file (default: .env)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable DEBUG logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("markets", help="List all markets")

    for name, help_text in (
        ("status", "Show one market"),
        ("watch", "Show one market, re-rendered every tick until Ctrl+C"),
        ("claim", "Claim winnings (or a refund) from a resolved market"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--market", type=int, default=0, help="Market id (default: 0)")

    approve = sub.add_parser("approve", help="Approve the market to spend your tokens")
    approve.add_argument("--market", type=int, default=0, help="Market id (default: 0)")
    approve.add_argument("--amount", help="Amount the approval must cover")

    buy = sub.add_parser("buy", help="Buy YES or NO shares")
    buy.add_argument("--market", type=int, default=0, help="Market id (default: 0)")
    buy.add_argument("--outcome", choices=["YES", "NO", "yes", "no"], default="YES")
    buy.add_argument("--amount", help="Amount in the token's smallest unit")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)

    config = AppConfig.from_env_file(args.env_file)
    try:
        setup_logging("ammtrader", level="DEBUG" if args.verbose else config.log_level)
    except ConfigurationError:
        setup_logging("ammtrader")

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        return 2

    try:
        return asyncio.run(run_command(args, config))
    except AmmTraderError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except KeyboardInterrupt:
        return 130
