"""replay-uploader: post new game replays to Slack, once each.

Watches a directory for replay files, uploads each new one to a Slack
channel and records it in a SQLite ledger so restarts never repost.
"""

__version__ = "0.1.0"

from replay_uploader.config import load_config, UploaderConfig
from replay_uploader.delivery import DeliveryLoop, CycleReport, UploadAttempt, FailurePolicy
from replay_uploader.errors import (
    ReplayUploaderError,
    ConfigError,
    StorageError,
    StorageInitError,
    StorageQueryError,
    StorageWriteError,
    ScanError,
    UploadError,
)
from replay_uploader.factory import build_context, build_loop, UploaderContext
from replay_uploader.ledger import ReplayLedger, ReplayRecord
from replay_uploader.scanner import ReplayScanner
from replay_uploader.slack import SlackUploader, SlackConfig

__all__ = [
    "load_config",
    "UploaderConfig",
    "DeliveryLoop",
    "CycleReport",
    "UploadAttempt",
    "FailurePolicy",
    "ReplayUploaderError",
    "ConfigError",
    "StorageError",
    "StorageInitError",
    "StorageQueryError",
    "StorageWriteError",
    "ScanError",
    "UploadError",
    "build_context",
    "build_loop",
    "UploaderContext",
    "ReplayLedger",
    "ReplayRecord",
    "ReplayScanner",
    "SlackUploader",
    "SlackConfig",
]
