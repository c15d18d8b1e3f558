"""Delivery loop: scan the replay directory and upload anything new.

Each cycle runs strictly in order:

  Scanning  → list replay files in the watched directory
  Filtering → drop files whose name is already in the ledger
  Uploading → send the remaining files one at a time
  Recording → write each confirmed upload to the ledger
  Sleeping  → wait check_interval seconds, then scan again

A name is recorded only after Slack confirms the upload, and recorded
before the next file is attempted. If recording fails the process stops,
and the file is uploaded again after a restart: uploads are
at-least-once, recorded successes are at-most-once.

Two failure policies govern upload errors:

- ``abort``: the first failed upload stops the loop; later files in the
  cycle are not attempted.
- ``skip``: transient failures are retried within the cycle, and a file
  that still fails is left unrecorded for the next cycle to pick up.

Scan and ledger errors stop the loop under either policy.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from replay_uploader.errors import StorageWriteError, UploadError
from replay_uploader.retry import RetryPolicy, retry

if TYPE_CHECKING:
    from replay_uploader.ledger import ReplayLedger
    from replay_uploader.scanner import ReplayScanner
    from replay_uploader.slack import SlackUploader

logger = logging.getLogger(__name__)


def replay_identifier(path: Path) -> str:
    """Ledger key for a replay: its base name, always encodable as UTF-8.

    Names that are not valid UTF-8 on disk keep their raw bytes as
    backslash escapes, so each file still maps to one distinct key.
    """
    return os.fsencode(path.name).decode("utf-8", "backslashreplace")


class FailurePolicy(Enum):
    ABORT = "abort"
    SKIP = "skip"


class AttemptStatus(Enum):
    PENDING = "pending"
    UPLOADED = "uploaded"
    FAILED = "failed"


@dataclass
class UploadAttempt:
    identifier: str
    path: Path
    status: AttemptStatus = AttemptStatus.PENDING
    attempted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    tries: int = 0
    error: str | None = None

    def mark_uploaded(self) -> None:
        self.status = AttemptStatus.UPLOADED

    def mark_failed(self, error: str) -> None:
        self.status = AttemptStatus.FAILED
        self.error = error


@dataclass
class CycleReport:
    """What a single scan-filter-upload-record pass did."""
    scanned: int = 0
    already_uploaded: list[str] = field(default_factory=list)
    attempts: list[UploadAttempt] = field(default_factory=list)

    @property
    def uploaded(self) -> list[str]:
        return [a.identifier for a in self.attempts if a.status == AttemptStatus.UPLOADED]

    @property
    def failed(self) -> list[str]:
        return [a.identifier for a in self.attempts if a.status == AttemptStatus.FAILED]


class DeliveryLoop:
    """Uploads every new replay in a directory exactly once per ledger entry.

    The ledger must already be initialized. The loop is the only writer
    to it for the lifetime of the process.
    """

    def __init__(
        self,
        replay_dir: Path | str,
        scanner: ReplayScanner,
        ledger: ReplayLedger,
        uploader: SlackUploader,
        check_interval: float = 30.0,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        retry_policy: RetryPolicy | None = None,
        dry_run: bool = False,
        sleep_func: Callable[[float], None] | None = None,
    ) -> None:
        self.replay_dir = Path(replay_dir)
        self._scanner = scanner
        self._ledger = ledger
        self._uploader = uploader
        self.check_interval = check_interval
        self.failure_policy = failure_policy
        self._retry_policy = retry_policy or RetryPolicy()
        self.dry_run = dry_run
        self._sleep = sleep_func or time.sleep
        self._cycles = 0

    @property
    def cycles_completed(self) -> int:
        return self._cycles

    def run_forever(self, max_cycles: int | None = None) -> None:
        """Run cycles until an error propagates, or max_cycles have completed.

        The sleep follows every cycle except the last one of a bounded run.
        """
        logger.info("Watching directory '%s' for replays to upload...", self.replay_dir)
        while True:
            self.run_cycle()
            if max_cycles is not None and self._cycles >= max_cycles:
                return
            self._sleep(self.check_interval)

    def run_cycle(self) -> CycleReport:
        report = CycleReport()
        paths = self._scanner.scan(self.replay_dir)
        report.scanned = len(paths)

        for path in paths:
            identifier = replay_identifier(path)
            if self._ledger.contains(identifier):
                report.already_uploaded.append(identifier)
                continue

            if self.dry_run:
                logger.info("[dry-run] Would upload replay '%s'", path)
                continue

            attempt = UploadAttempt(identifier=identifier, path=path)
            report.attempts.append(attempt)
            self._deliver(attempt)

        self._cycles += 1
        if report.attempts:
            logger.info(
                "Cycle %d: %d uploaded, %d failed, %d already uploaded",
                self._cycles, len(report.uploaded), len(report.failed),
                len(report.already_uploaded),
            )
        return report

    def _deliver(self, attempt: UploadAttempt) -> None:
        def _upload() -> None:
            attempt.tries += 1
            self._uploader.upload(attempt.path, attempt.identifier)

        try:
            if self.failure_policy == FailurePolicy.SKIP:
                retry(_upload, self._retry_policy, self._sleep)
            else:
                _upload()
        except UploadError as exc:
            attempt.mark_failed(exc.reason)
            if self.failure_policy == FailurePolicy.ABORT:
                raise
            logger.warning(
                "Skipping replay '%s' until the next cycle: %s", attempt.path, exc.reason,
            )
            return

        logger.info("Uploaded replay '%s'", attempt.path)
        try:
            self._ledger.record(attempt.identifier)
        except StorageWriteError:
            logger.error(
                "Replay '%s' was uploaded but could not be recorded; "
                "it will be uploaded again after a restart", attempt.path,
            )
            raise
        attempt.mark_uploaded()
