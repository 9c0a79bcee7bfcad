"""
cli.py - Command-line entry point for scheduled jobs and admin tasks.

Usage:
    python -m bbgold.cli [--db-path data/bbgold.db] sweep
    python -m bbgold.cli recycle
    python -m bbgold.cli charge-gas
    python -m bbgold.cli confirm
    python -m bbgold.cli open-account USER_ID
    python -m bbgold.cli wallet USER_ID

Settings not given on the command line come from BBGOLD_* environment
variables or a local .env file.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from bbgold.config import GameSettings
from bbgold.errors import GameError
from bbgold.service import GameService

logger = logging.getLogger("cli")


async def _run(service: GameService, args: argparse.Namespace):
    await service.start()
    try:
        if args.command == "recycle":
            return {"recycled": await service.recycle_stale_coins()}
        if args.command == "charge-gas":
            return await service.consume_gas_for_all()
        if args.command == "confirm":
            return await service.confirm_all_pending()
        if args.command == "sweep":
            return await service.run_maintenance()
        if args.command == "open-account":
            return await service.open_account(args.user_id)
        if args.command == "wallet":
            return await service.get_wallet(args.user_id)
        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await service.stop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Black Bart's Gold game core")
    parser.add_argument("--db-path", default=None, help="SQLite database path (default: BBGOLD_DB_PATH or data/bbgold.db)")
    parser.add_argument("--log-level", default=None, help="Logging level (default: BBGOLD_LOG_LEVEL or INFO)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("recycle", help="Remove system coins from idle grid cells")
    sub.add_parser("charge-gas", help="Charge today's gas for every wallet")
    sub.add_parser("confirm", help="Confirm pending finds past the confirmation window")
    sub.add_parser("sweep", help="Run recycle, charge-gas and confirm in order")

    open_acct = sub.add_parser("open-account", help="Create a wallet with the starter balance")
    open_acct.add_argument("user_id")
    wallet = sub.add_parser("wallet", help="Show a wallet")
    wallet.add_argument("user_id")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.db_path:
        overrides["db_path"] = args.db_path
    if args.log_level:
        overrides["log_level"] = args.log_level
    settings = GameSettings(**overrides)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s",
        datefmt="%H:%M:%S",
    )
    logger.info("Running %s against %s", args.command, settings.db_path)

    try:
        result = asyncio.run(_run(GameService(settings), args))
    except GameError as exc:
        logger.error("%s failed: %s", args.command, exc.message)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
