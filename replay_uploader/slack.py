"""Slack integration module for posting replay files to a channel.

Uploads go through the ``files.upload`` Web API method as a multipart
form. Slack answers HTTP 200 for most API-level failures, so a call
only counts as successful when the JSON body also carries ``"ok": true``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests

from replay_uploader.config import SLACK_API_URL
from replay_uploader.errors import UploadError

logger = logging.getLogger(__name__)


@dataclass
class SlackConfig:
    auth_token: str
    channel_id: str
    api_url: str = SLACK_API_URL
    timeout: float = 60.0


def response_ok(status_code: int, body_text: str, filename: str = "") -> dict[str, Any]:
    """Interpret a files.upload response, returning the parsed body.

    Raises:
        UploadError: On a non-200 status, a body that is not a JSON
            object, or ``"ok"`` not being true. In the last case the
            API's ``error`` string becomes the failure reason.
    """
    if status_code != 200:
        transient = status_code >= 500 or status_code == 429
        raise UploadError(filename, f"HTTP status {status_code}", transient=transient)

    try:
        body = json.loads(body_text)
    except ValueError as exc:
        logger.error("Error parsing JSON response body: %s", body_text)
        raise UploadError(filename, f"unparseable response body: {exc}") from exc

    if not isinstance(body, dict):
        raise UploadError(filename, "unparseable response body: expected a JSON object")

    if body.get("ok") is not True:
        raise UploadError(filename, str(body.get("error") or "response did not report ok"))

    return body


class SlackUploader:
    """Uploads replay files to a Slack channel."""

    def __init__(self, config: SlackConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._session = session or requests.Session()

    def upload(self, file_path: Path | str, filename: str | None = None) -> dict[str, Any]:
        """Upload one file and return Slack's response body.

        Args:
            file_path: Replay file to send.
            filename: Name shown in Slack. Defaults to the file's base name.

        Raises:
            UploadError: If the file cannot be read, the request fails,
                or Slack does not confirm the upload.
        """
        file_path = Path(file_path)
        name = filename or file_path.name
        logger.info("Uploading replay '%s'", file_path)

        try:
            content = file_path.read_bytes()
        except OSError as exc:
            raise UploadError(name, f"cannot read file: {exc}") from exc

        data = {
            "token": self.config.auth_token,
            "filename": name,
            "channels": self.config.channel_id,
        }
        files = {"file": (name, content)}

        try:
            resp = self._session.post(
                self.config.api_url, data=data, files=files, timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            raise UploadError(name, f"request failed: {exc}", transient=True) from exc

        return response_ok(resp.status_code, resp.text, name)
