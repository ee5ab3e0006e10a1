"""
Shared fixtures: a stub authorized session standing in for google-auth's
``AuthorizedSession`` and a dispatcher wired to it.  No test touches the
network.
"""

from __future__ import annotations

import os
import sys
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from gcptools import build_registry
from toolcore.dispatch import Dispatcher


class StubSession:
    """Replays queued responses and records every request."""

    def __init__(self) -> None:
        self._queue: list = []
        self.calls: list[tuple[str, str, dict]] = []
        self.closed = 0

    def add(self, payload=None, status: int = 200, reason: str = "OK") -> "StubSession":
        resp = MagicMock()
        resp.status_code = status
        resp.reason = reason
        resp.json.return_value = {} if payload is None else payload
        self._queue.append(resp)
        return self

    def add_error(self, exc: Exception) -> "StubSession":
        self._queue.append(exc)
        return self

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if not self._queue:
            raise AssertionError(f"unexpected request: {method} {url}")
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed += 1


class StubAuth:
    """Hands out the same stub session for every call."""

    def __init__(self, session: StubSession) -> None:
        self.session = session
        self.sessions_opened = 0

    def get_session(self, ctx):
        ctx.check()
        self.sessions_opened += 1
        return self.session


@pytest.fixture
def session() -> StubSession:
    return StubSession()


@pytest.fixture
def auth(session) -> StubAuth:
    return StubAuth(session)


@pytest.fixture
def dispatcher(auth) -> Dispatcher:
    return Dispatcher(build_registry(auth))
