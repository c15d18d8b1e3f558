"""Configuration loader for replay-uploader.

Loads a YAML config file with environment variable overrides. JSON
is valid YAML, so the original ``*_conf.json`` files load unchanged.
All env vars use the REPLAY_UPLOADER_ prefix.
"""

from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from replay_uploader.errors import ConfigError


ENV_PREFIX = "REPLAY_UPLOADER_"
DEFAULT_CONFIG_PATH = "towerfall_replay_slack_uploader_conf.json"
SLACK_API_URL = "https://slack.com/api/files.upload"
FAILURE_POLICIES = ("abort", "skip")


@dataclass
class UploaderConfig:
    """Settings shared by the scanner, ledger, upload client and loop."""
    replay_directory_path: str
    auth_token: str
    channel_id: str
    ledger_path: str = "posted_replays.sqlite.db"
    replay_pattern: str = "*.gif"
    check_interval: float = 30.0
    api_url: str = SLACK_API_URL
    upload_timeout: float = 60.0
    failure_policy: str = "abort"
    max_attempts: int = 3


def load_config(path: Path | None = None) -> UploaderConfig:
    """Load config from a YAML (or JSON) file with env var overrides.

    Env vars override file values. Mapping:
      REPLAY_UPLOADER_REPLAY_DIRECTORY_PATH → ReplayDirectoryPath
      REPLAY_UPLOADER_AUTH_TOKEN → AuthToken
      REPLAY_UPLOADER_CHANNEL_ID → ChannelID
      REPLAY_UPLOADER_LEDGER_PATH → ledger_path
      REPLAY_UPLOADER_CHECK_INTERVAL → check_interval
      REPLAY_UPLOADER_FAILURE_POLICY → failure_policy

    Raises:
        ConfigError: If the file cannot be read or parsed, a required
            setting is missing, or a value has the wrong type.
    """
    raw: dict[str, Any] = {}
    if path is not None:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read configuration '{path}': {exc}") from exc
        loaded = _parse(path, text)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Configuration '{path}' must be a mapping")
        raw = loaded

    cfg = UploaderConfig(
        replay_directory_path=_required(
            "REPLAY_DIRECTORY_PATH",
            _lookup(raw, "ReplayDirectoryPath", "replay_directory_path"),
        ),
        auth_token=_required("AUTH_TOKEN", _lookup(raw, "AuthToken", "auth_token")),
        channel_id=_required("CHANNEL_ID", _lookup(raw, "ChannelID", "channel_id")),
        ledger_path=str(_env_or(
            "LEDGER_PATH", raw.get("ledger_path", "posted_replays.sqlite.db"),
        )),
        replay_pattern=str(raw.get("replay_pattern", "*.gif")),
        check_interval=_number(
            "check_interval", _env_or("CHECK_INTERVAL", raw.get("check_interval", 30.0)),
        ),
        api_url=str(raw.get("api_url", SLACK_API_URL)),
        upload_timeout=_number("upload_timeout", raw.get("upload_timeout", 60.0)),
        failure_policy=str(_env_or("FAILURE_POLICY", raw.get("failure_policy", "abort"))),
        max_attempts=int(_number("max_attempts", raw.get("max_attempts", 3))),
    )

    if cfg.failure_policy not in FAILURE_POLICIES:
        raise ConfigError(
            f"Unknown failure_policy '{cfg.failure_policy}', "
            f"expected one of: {', '.join(FAILURE_POLICIES)}"
        )
    if not math.isfinite(cfg.check_interval) or cfg.check_interval < 0:
        raise ConfigError("check_interval must be a finite, non-negative number")
    if not math.isfinite(cfg.upload_timeout) or cfg.upload_timeout <= 0:
        raise ConfigError("upload_timeout must be a finite number greater than 0")
    if cfg.max_attempts < 1:
        raise ConfigError("max_attempts must be at least 1")

    return cfg


def _parse(path: Path, text: str) -> Any:
    # YAML rejects tab indentation, which JSON configs may use.
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        try:
            return json.loads(text)
        except ValueError:
            raise ConfigError(f"Cannot parse configuration '{path}': {exc}") from exc


def _lookup(raw: dict[str, Any], *keys: str) -> Any:
    """Return the first non-empty value among keys, matched case-insensitively."""
    folded = {str(k).lower(): v for k, v in raw.items()}
    for key in keys:
        value = folded.get(key.lower())
        if value not in (None, ""):
            return value
    return ""


def _required(suffix: str, default: Any) -> str:
    value = _env_or(suffix, default)
    if value in (None, ""):
        raise ConfigError(f"Missing required setting {suffix.lower()} (env {ENV_PREFIX}{suffix})")
    return str(value)


def _number(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Setting {name} must be a number, got {value!r}") from exc


def _env_or(suffix: str, default: Any) -> Any:
    return os.environ.get(f"{ENV_PREFIX}{suffix}", default)
