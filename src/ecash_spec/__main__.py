"""
eCash header sync CLI entry point.

Sync a wallet's header chain from remote providers, validating every header
against the retarget rules of its era.

Usage::

    python -m ecash_spec --wallet-id alice --primary-url https://chronik.example.org
    python -m ecash_spec --wallet-id alice --mode blockchair \\
        --primary-url https://chronik.example.org --secondary-url https://api.example.org
    python -m ecash_spec --wallet-id alice --mode full --primary-url http://localhost:8080
    python -m ecash_spec --wallet-id alice --clear

Options:
    --network          Network to sync (default: mainnet)
    --data-dir         Directory holding wallet databases (default: ./data)
    --wallet-id        Wallet identifier (required)
    --mode             Sync mode: full, api or blockchair (default: api)
    --primary-url      Base URL of the fast provider
    --secondary-url    Base URL of the complete-history provider
    --checkpoints      YAML file with extra checkpoints
    --until-height     Stop once this height is confirmed
    --address          Address to list transactions for (can be repeated)
    --clear            Delete the wallet's databases in every mode and exit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from ecash_spec.exceptions import EcashSpecError
from ecash_spec.subspecs.chain import NetworkType, network_config
from ecash_spec.subspecs.containers import ProviderId, SyncMode
from ecash_spec.subspecs.metrics import generate_metrics
from ecash_spec.subspecs.storage import SQLiteDatabase, clear_wallet_data, database_path
from ecash_spec.subspecs.sync import (
    CheckpointResolver,
    HeaderSyncService,
    HttpDataProvider,
    SyncStateTracker,
    SyncStatus,
    build_header_source,
    build_transaction_provider,
    load_checkpoints,
    merge_checkpoints,
)
from ecash_spec.subspecs.validation import build_validator_set

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Log formatter with ANSI colors per level."""

    GREY = "\x1b[38;5;245m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;226m"
    RED = "\x1b[38;5;196m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        return f"{timestamp} {levelname} {record.name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure root logging with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)
    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_sync(args: argparse.Namespace) -> int:
    """
    Run one header sync for the configured wallet.

    Returns:
        Process exit code: 0 when synced, 1 when stalled or rejected.
    """
    network = NetworkType(args.network)
    config = network_config(network)

    checkpoints = config.checkpoints
    if args.checkpoints is not None:
        checkpoints = merge_checkpoints(checkpoints, load_checkpoints(args.checkpoints))

    mode = SyncMode(args.mode)
    args.data_dir.mkdir(parents=True, exist_ok=True)
    path = database_path(args.data_dir, network, args.wallet_id, mode)

    primary = (
        HttpDataProvider(args.primary_url, ProviderId.PRIMARY) if args.primary_url else None
    )
    secondary = (
        HttpDataProvider(args.secondary_url, ProviderId.SECONDARY) if args.secondary_url else None
    )

    with SQLiteDatabase(path) as database:
        tracker = SyncStateTracker(database, config.name, args.wallet_id, mode)
        service = HeaderSyncService(
            validators=build_validator_set(config),
            store=database,
            tracker=tracker,
            provider=build_header_source(mode, tracker, primary, secondary),
            resolver=CheckpointResolver(checkpoints),
        )
        try:
            progress = await service.sync(until_height=args.until_height)

            transactions = build_transaction_provider(mode, tracker, primary, secondary)
            if transactions is not None and progress.status is SyncStatus.SYNCED:
                for address in args.addresses:
                    items = await transactions.fetch_transactions(address, 0)
                    logger.info("%s: %s transactions", address, len(items))
        finally:
            for provider in (primary, secondary):
                if provider is not None:
                    await provider.close()

    logger.info(
        "Sync %s: confirmed height %s, %s headers validated",
        progress.status.name,
        progress.confirmed_height,
        progress.headers_validated,
    )
    if args.metrics:
        sys.stdout.write(generate_metrics().decode())
    return 0 if progress.status is SyncStatus.SYNCED else 1


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="eCash header sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--network",
        choices=[network.value for network in NetworkType],
        default=NetworkType.MAINNET.value,
        help="Network to sync (default: mainnet)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("data"),
        help="Directory holding wallet databases (default: ./data)",
    )
    parser.add_argument(
        "--wallet-id",
        required=True,
        help="Wallet identifier",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in SyncMode],
        default=SyncMode.API.value,
        help="Sync mode (default: api)",
    )
    parser.add_argument(
        "--primary-url",
        default=None,
        help="Base URL of the fast, limited-history provider",
    )
    parser.add_argument(
        "--secondary-url",
        default=None,
        help="Base URL of the complete-history provider",
    )
    parser.add_argument(
        "--checkpoints",
        type=Path,
        default=None,
        help="YAML file with extra checkpoints",
    )
    parser.add_argument(
        "--until-height",
        type=int,
        default=None,
        help="Stop once this height is confirmed",
    )
    parser.add_argument(
        "--address",
        action="append",
        default=[],
        dest="addresses",
        help="Address to list transactions for after sync (can be repeated)",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete the wallet's databases in every sync mode and exit",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print Prometheus metrics after sync",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )

    args = parser.parse_args()

    setup_logging(args.verbose, args.no_color)

    if args.clear:
        removed = clear_wallet_data(args.data_dir, NetworkType(args.network), args.wallet_id)
        logger.info("Removed %s files", len(removed))
        sys.exit(0)

    try:
        code = asyncio.run(run_sync(args))
    except KeyboardInterrupt:
        logger.info("Interrupted; progress is kept at the last committed batch")
        code = 130
    except EcashSpecError as exc:
        logger.error("Sync failed: %s", exc.message)
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
