"""Factory for building the uploader's components from an UploaderConfig.

The context object replaces process-wide globals: the open ledger
handle and the loaded configuration travel together, so the CLI and
tests can swap in their own collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import requests

from replay_uploader.config import UploaderConfig
from replay_uploader.delivery import DeliveryLoop, FailurePolicy
from replay_uploader.ledger import ReplayLedger
from replay_uploader.retry import RetryPolicy
from replay_uploader.scanner import ReplayScanner
from replay_uploader.slack import SlackConfig, SlackUploader


@dataclass
class UploaderContext:
    config: UploaderConfig
    ledger: ReplayLedger
    scanner: ReplayScanner
    uploader: SlackUploader

    def close(self) -> None:
        self.ledger.close()


def build_context(
    cfg: UploaderConfig,
    ledger: ReplayLedger | None = None,
    session: requests.Session | None = None,
) -> UploaderContext:
    """Build the components from config and initialize the ledger.

    Args:
        cfg: Loaded configuration.
        ledger: Optional pre-built ledger. If None, one is constructed
            from cfg.ledger_path.
        session: Optional HTTP session for the Slack client.

    Raises:
        StorageInitError: If the ledger cannot be created.
    """
    if ledger is None:
        ledger = ReplayLedger(Path(cfg.ledger_path))
    ledger.initialize()

    uploader = SlackUploader(
        SlackConfig(
            auth_token=cfg.auth_token,
            channel_id=cfg.channel_id,
            api_url=cfg.api_url,
            timeout=cfg.upload_timeout,
        ),
        session=session,
    )

    return UploaderContext(
        config=cfg,
        ledger=ledger,
        scanner=ReplayScanner(cfg.replay_pattern),
        uploader=uploader,
    )


def build_loop(
    ctx: UploaderContext,
    dry_run: bool = False,
    sleep_func: Callable[[float], None] | None = None,
) -> DeliveryLoop:
    cfg = ctx.config
    return DeliveryLoop(
        replay_dir=cfg.replay_directory_path,
        scanner=ctx.scanner,
        ledger=ctx.ledger,
        uploader=ctx.uploader,
        check_interval=cfg.check_interval,
        failure_policy=FailurePolicy(cfg.failure_policy),
        retry_policy=RetryPolicy(max_attempts=cfg.max_attempts),
        dry_run=dry_run,
        sleep_func=sleep_func,
    )
