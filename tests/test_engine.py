"""Tests for persistjar.engine module."""

import time
from datetime import datetime, timedelta, timezone
from http.cookiejar import DefaultCookiePolicy

import pytest
from freezegun import freeze_time
from persistjar.engine import StdlibEngine
from persistjar.errors import CookieRejectedError
from persistjar.models import Cookie
from persistjar.origin import Origin


class TestStdlibEngineSelection:
    """Tests for StdlibEngine.cookies."""

    def test_empty_engine(self, origin):
        """Test an empty engine returns an empty list."""
        assert StdlibEngine().cookies(origin) == []

    def test_host_only_cookie_round_trips(self, origin):
        """Test a host-only cookie comes back unchanged."""
        engine = StdlibEngine()
        engine.set_cookies(origin, [Cookie("SID", "abc123")])
        assert engine.cookies(origin) == [Cookie("SID", "abc123")]

    def test_host_only_cookie_is_host_scoped(self, origin):
        """Test host-only cookies are not sent to sibling hosts."""
        engine = StdlibEngine()
        engine.set_cookies(origin, [Cookie("SID", "abc123")])
        assert engine.cookies(Origin("http", "api.example.com")) == []

    def test_domain_cookie_reaches_subdomains(self, origin):
        """Test a Domain cookie applies to sibling subdomains."""
        engine = StdlibEngine()
        engine.set_cookies(origin, [Cookie("shared", "1", domain="example.com")])
        assert engine.cookies(Origin("https", "api.example.com")) == [
            Cookie("shared", "1", domain="example.com")
        ]

    def test_port_does_not_matter(self, origin):
        """Test cookies ignore the request port."""
        engine = StdlibEngine()
        engine.set_cookies(Origin("http", "www.example.com:8080"), [Cookie("a", "1")])
        assert engine.cookies(origin) == [Cookie("a", "1")]

    def test_secure_cookie_needs_https(self, origin):
        """Test Secure cookies are only returned over https."""
        engine = StdlibEngine()
        engine.set_cookies(Origin("https", "www.example.com"), [Cookie("s", "1", secure=True)])
        assert engine.cookies(origin) == []
        assert engine.cookies(Origin("https", "www.example.com")) == [Cookie("s", "1", secure=True)]

    def test_order_longest_path_first_then_creation(self, origin):
        """Test results are ordered by path length, then creation order."""
        engine = StdlibEngine()
        engine.set_cookies(
            origin,
            [Cookie("root2", "b", path="/"), Cookie("deep", "c", path="/a/b"), Cookie("root1", "a", path="/")],
        )
        assert [c.name for c in engine.cookies(origin)] == ["deep", "root2", "root1"]

    def test_update_keeps_creation_position(self, origin):
        """Test replacing a cookie's value keeps its place."""
        engine = StdlibEngine()
        engine.set_cookies(origin, [Cookie("a", "1"), Cookie("b", "2")])
        engine.set_cookies(origin, [Cookie("a", "3")])
        assert engine.cookies(origin) == [Cookie("a", "3"), Cookie("b", "2")]

    def test_attributes_survive(self, origin, far_future):
        """Test expiry and nonstandard attributes are carried through the engine."""
        cookie = Cookie(
            "a", "1", path="/", expires=far_future, raw_expires="Tue, 1 Jan 2999 12:00:00 GMT",
            http_only=True, same_site="Lax",
        )
        engine = StdlibEngine()
        engine.set_cookies(origin, [cookie])
        assert engine.cookies(origin) == [cookie]

    def test_expired_cookie_deletes_existing(self, origin):
        """Test setting an already expired cookie removes the stored one."""
        engine = StdlibEngine()
        engine.set_cookies(origin, [Cookie("a", "1"), Cookie("b", "2")])
        past = datetime.fromtimestamp(time.time() - 3600, timezone.utc)
        engine.set_cookies(origin, [Cookie("a", "", expires=past)])
        assert engine.cookies(origin) == [Cookie("b", "2")]
        assert len(engine) == 1

    def test_expired_cookie_without_match_is_ignored(self, origin):
        """Test an expired cookie with nothing to replace stores nothing."""
        engine = StdlibEngine()
        past = datetime.fromtimestamp(time.time() - 3600, timezone.utc)
        engine.set_cookies(origin, [Cookie("a", "1", expires=past)])
        assert engine.cookies(origin) == []

    def test_pruned_cookies_release_creation_order(self, origin):
        """Test cookies dropped by expiry pruning leave no ordering entries behind."""
        engine = StdlibEngine()
        with freeze_time("2030-01-01 00:00:00"):
            soon = datetime.now(timezone.utc) + timedelta(hours=1)
            engine.set_cookies(origin, [Cookie("short", "1", expires=soon), Cookie("keep", "2")])
            assert len(engine._jar._created) == 2
        with freeze_time("2030-01-01 02:00:00"):
            assert engine.cookies(origin) == [Cookie("keep", "2")]
            assert list(engine._jar._created) == [("www.example.com", "/", "keep")]


class TestStdlibEngineRejection:
    """Tests for cookies refused by the engine."""

    def test_foreign_domain_rejected(self, origin):
        """Test a Domain attribute for another site is refused."""
        engine = StdlibEngine()
        with pytest.raises(CookieRejectedError) as exc_info:
            engine.set_cookies(origin, [Cookie("evil", "1", domain="other.com")])
        [(cookie, reason)] = exc_info.value.rejected
        assert cookie.name == "evil"
        assert reason == "refused by cookie policy"

    def test_rejection_does_not_abort_others(self, origin):
        """Test the other cookies of the call are still stored."""
        engine = StdlibEngine()
        with pytest.raises(CookieRejectedError) as exc_info:
            engine.set_cookies(
                origin,
                [Cookie("a", "1"), Cookie("", "nameless"), Cookie("b", "2")],
            )
        assert exc_info.value.rejected[0][1] == "empty cookie name"
        assert [c.name for c in engine.cookies(origin)] == ["a", "b"]

    def test_custom_policy_blocks_domain(self):
        """Test a configured policy is applied."""
        engine = StdlibEngine(policy=DefaultCookiePolicy(blocked_domains=["blocked.com"]))
        blocked = Origin("https", "blocked.com")
        with pytest.raises(CookieRejectedError):
            engine.set_cookies(blocked, [Cookie("a", "1")])
        assert engine.cookies(blocked) == []

    def test_repr(self, origin):
        """Test StdlibEngine repr."""
        engine = StdlibEngine()
        engine.set_cookies(origin, [Cookie("a", "1")])
        assert repr(engine) == "<StdlibEngine 1 cookies>"
