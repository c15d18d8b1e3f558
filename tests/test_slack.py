"""Tests for the slack module."""

import pytest
import requests

from conftest import FakeResponse, FakeSession
from replay_uploader.errors import UploadError
from replay_uploader.slack import SlackConfig, SlackUploader, response_ok


def _uploader(session, **kwargs):
    cfg = SlackConfig(auth_token="xoxb-test", channel_id="C0123", **kwargs)
    return SlackUploader(cfg, session=session)


class TestResponseOk:
    def test_ok_true_is_success(self):
        assert response_ok(200, '{"ok": true}') == {"ok": True}

    def test_ok_false_surfaces_api_error(self):
        with pytest.raises(UploadError) as exc_info:
            response_ok(200, '{"ok": false, "error": "invalid_auth"}', "a.gif")
        assert exc_info.value.reason == "invalid_auth"
        assert exc_info.value.transient is False
        assert "a.gif" in str(exc_info.value)

    def test_non_json_body(self):
        with pytest.raises(UploadError, match="unparseable response body"):
            response_ok(200, "<html>Bad Gateway</html>")

    def test_json_that_is_not_an_object(self):
        with pytest.raises(UploadError, match="unparseable"):
            response_ok(200, "[1, 2]")

    def test_missing_ok_flag(self):
        with pytest.raises(UploadError, match="did not report ok"):
            response_ok(200, '{"file": {}}')

    def test_truthy_non_bool_ok_is_failure(self):
        with pytest.raises(UploadError):
            response_ok(200, '{"ok": "yes"}')

    def test_non_200_status(self):
        with pytest.raises(UploadError, match="HTTP status 404") as exc_info:
            response_ok(404, '{"ok": true}')
        assert exc_info.value.transient is False

    def test_server_errors_are_transient(self):
        with pytest.raises(UploadError) as exc_info:
            response_ok(503, "")
        assert exc_info.value.transient is True

    def test_rate_limited_is_transient(self):
        with pytest.raises(UploadError) as exc_info:
            response_ok(429, '{"ok": false, "error": "ratelimited"}')
        assert exc_info.value.transient is True


class TestSlackUploader:
    def test_upload_sends_multipart_fields(self, tmp_path):
        replay = tmp_path / "match-001.gif"
        replay.write_bytes(b"GIF89a-data")
        session = FakeSession()

        result = _uploader(session).upload(replay)

        assert result == {"ok": True}
        call = session.calls[0]
        assert call["url"] == "https://slack.com/api/files.upload"
        assert call["data"] == {
            "token": "xoxb-test",
            "filename": "match-001.gif",
            "channels": "C0123",
        }
        assert call["files"] == {"file": ("match-001.gif", b"GIF89a-data")}

    def test_upload_uses_configured_url_and_timeout(self, tmp_path):
        replay = tmp_path / "a.gif"
        replay.write_bytes(b"x")
        session = FakeSession()
        _uploader(session, api_url="https://slack.test/api/files.upload", timeout=5).upload(replay)
        assert session.calls[0]["url"] == "https://slack.test/api/files.upload"
        assert session.calls[0]["timeout"] == 5

    def test_api_failure_raises(self, tmp_path):
        replay = tmp_path / "a.gif"
        replay.write_bytes(b"x")
        session = FakeSession([FakeResponse(body={"ok": False, "error": "channel_not_found"})])
        client = _uploader(session)
        with pytest.raises(UploadError, match="channel_not_found"):
            client.upload(replay)

    def test_transport_error_is_transient(self, tmp_path):
        replay = tmp_path / "a.gif"
        replay.write_bytes(b"x")
        session = FakeSession([requests.ConnectionError("connection reset")])
        with pytest.raises(UploadError) as exc_info:
            _uploader(session).upload(replay)
        assert exc_info.value.transient is True
        assert "connection reset" in exc_info.value.reason

    def test_missing_file_raises_without_request(self, tmp_path):
        session = FakeSession()
        with pytest.raises(UploadError, match="cannot read file"):
            _uploader(session).upload(tmp_path / "gone.gif")
        assert session.calls == []
