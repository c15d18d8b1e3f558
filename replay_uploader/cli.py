"""CLI entry point for replay-uploader.

Usage:
    replay-uploader [--config PATH] [-v] watch [--once] [--dry-run]
    replay-uploader [--config PATH] log
    replay-uploader [--config PATH] status
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from replay_uploader.config import DEFAULT_CONFIG_PATH, UploaderConfig, load_config
from replay_uploader.errors import ConfigError, ReplayUploaderError, StorageInitError
from replay_uploader.factory import UploaderContext, build_context, build_loop

logger = logging.getLogger("replay_uploader")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def cmd_watch(ctx: UploaderContext, once: bool, dry_run: bool) -> None:
    loop = build_loop(ctx, dry_run=dry_run)
    loop.run_forever(max_cycles=1 if once else None)


def cmd_log(ctx: UploaderContext) -> None:
    records = ctx.ledger.records()
    print(f"Uploaded replays: {len(records)}")
    for r in records:
        print(f"  {r.uploaded_at}  {r.identifier}")


def cmd_status(ctx: UploaderContext) -> None:
    cfg = ctx.config
    print(f"Replay directory: {cfg.replay_directory_path} ({cfg.replay_pattern})")
    print(f"Channel:          {cfg.channel_id}")
    print(f"Auth token:       {_mask(cfg.auth_token)}")
    print(f"Ledger:           {cfg.ledger_path} ({ctx.ledger.count()} uploaded)")
    print(f"Check interval:   {cfg.check_interval:g}s")
    print(f"Failure policy:   {cfg.failure_policy}")


def _mask(secret: str) -> str:
    if len(secret) <= 4:
        return "****"
    return secret[:4] + "*" * (len(secret) - 4)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="replay-uploader",
        description="Upload new replay files to a Slack channel",
    )
    parser.add_argument("--config", type=Path, default=Path(DEFAULT_CONFIG_PATH),
                        help="Config file (YAML or JSON)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    watch_p = sub.add_parser("watch", help="Watch the replay directory and upload new replays")
    watch_p.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    watch_p.add_argument("--dry-run", action="store_true",
                         help="Report new replays without uploading or recording them")

    sub.add_parser("log", help="List uploaded replays")
    sub.add_parser("status", help="Show configuration status")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    try:
        cfg: UploaderConfig = load_config(args.config)
    except ConfigError as exc:
        logger.error("Error reading the configuration at '%s': %s", args.config, exc)
        return 1

    try:
        ctx = build_context(cfg)
    except StorageInitError as exc:
        logger.error("Error initializing the database at '%s': %s", cfg.ledger_path, exc)
        return 1

    try:
        if args.command == "watch":
            cmd_watch(ctx, args.once, args.dry_run)
        elif args.command == "log":
            cmd_log(ctx)
        elif args.command == "status":
            cmd_status(ctx)
    except ReplayUploaderError as exc:
        if args.command == "watch":
            logger.error("Error watching the replay directory: %s", exc)
        else:
            logger.error("Error running '%s': %s", args.command, exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Stopped")
        return 130
    finally:
        ctx.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
