"""Pytest configuration and shared fixtures."""
import json
import os
import tempfile

# Keep per-run log files out of the working tree.
os.environ.setdefault("CHANNELCHAT_LOG_DIR", tempfile.mkdtemp(prefix="channelchat-logs-"))

import httpx
import pytest


class RecordingHandler:
    """Fake Discord API: answers from a route table and records requests."""

    def __init__(self, get=None, post=None):
        self.requests = []
        self._get = get
        self._post = post

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            if self._get is None:
                return httpx.Response(200, json=[])
            return self._get(request)
        if request.method == "POST":
            if self._post is None:
                return httpx.Response(200, json={"id": "999"})
            return self._post(request)
        return httpx.Response(405)

    @property
    def posts(self):
        return [r for r in self.requests if r.method == "POST"]

    @property
    def gets(self):
        return [r for r in self.requests if r.method == "GET"]


@pytest.fixture
def make_handler():
    """Return a factory for recording fake API handlers."""
    return RecordingHandler


@pytest.fixture
def message_payload():
    """Return a factory for message JSON payloads."""

    def _make(message_id, content="hi", username="bob", timestamp="t"):
        return {
            "id": message_id,
            "content": content,
            "author": {"id": "1", "username": username},
            "timestamp": timestamp,
        }

    return _make


@pytest.fixture
def config_file(tmp_path):
    """Write a valid credential file and return its path."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"token": "secret-token"}), encoding="utf-8")
    return path


@pytest.fixture
def scripted_input():
    """Return a factory for async console readers fed from a list.

    The reader raises EOFError once the lines run out, and records the
    prompts it was called with.
    """

    def _make(lines):
        remaining = list(lines)
        prompts = []

        async def read_line(prompt):
            prompts.append(prompt)
            if not remaining:
                raise EOFError
            return remaining.pop(0)

        read_line.prompts = prompts
        return read_line

    return _make
