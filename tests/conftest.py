"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest
from persistjar.cookies import CookieJar
from persistjar.models import Cookie
from persistjar.origin import Origin


class RecordingEngine:
    """In-memory engine that keeps the last cookies set per origin."""

    def __init__(self):
        self.data = {}
        self.calls = []

    def cookies(self, origin):
        return list(self.data.get((origin.scheme, origin.host), []))

    def set_cookies(self, origin, cookies):
        cookies = list(cookies)
        self.calls.append((origin, cookies))
        self.data[(origin.scheme, origin.host)] = cookies


@pytest.fixture
def origin():
    return Origin("http", "www.example.com")


@pytest.fixture
def sample_cookies():
    return [Cookie("SID", "abc123"), Cookie("PREF", "x")]


@pytest.fixture
def jar():
    return CookieJar()


@pytest.fixture
def populated_jar(jar, origin, sample_cookies):
    jar.set_cookies(origin, sample_cookies)
    return jar


@pytest.fixture
def recording_engine():
    return RecordingEngine()


@pytest.fixture
def far_future():
    return datetime(2999, 1, 1, 12, 0, tzinfo=timezone.utc)
