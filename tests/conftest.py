"""Shared fakes for tests that exercise the Slack upload path."""

import json

import pytest


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(body if body is not None else {"ok": True})


class FakeSession:
    """Stands in for requests.Session, recording each POST."""

    def __init__(self, responses=None):
        self.calls = []
        self._responses = list(responses or [])

    def post(self, url, data=None, files=None, timeout=None):
        self.calls.append({"url": url, "data": data, "files": files, "timeout": timeout})
        if self._responses:
            nxt = self._responses.pop(0)
            if isinstance(nxt, Exception):
                raise nxt
            return nxt
        return FakeResponse()

    @property
    def uploaded_names(self):
        return [c["data"]["filename"] for c in self.calls]


@pytest.fixture
def fake_session():
    return FakeSession()
