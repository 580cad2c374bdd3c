"""Cookie selection engines.

The jar only talks to an engine through :class:`Engine`. The default
:class:`StdlibEngine` delegates domain, path, secure and expiry matching to
:mod:`http.cookiejar`.
"""

from __future__ import annotations

import http.cookiejar
import itertools
import logging
import time
import urllib.request
from collections.abc import Iterable
from contextlib import suppress
from datetime import datetime, timezone
from typing import Protocol

from .errors import CookieRejectedError
from .models import Cookie
from .origin import Origin, canonical_host

logger = logging.getLogger(__name__)


class Engine(Protocol):
    """Cookie selection engine the jar delegates to."""

    def cookies(self, origin: Origin) -> list[Cookie]:
        """
        Return the cookies that apply to a request to ``origin``.

        Must not fail; returns an empty list when nothing applies.
        """

    def set_cookies(self, origin: Origin, cookies: Iterable[Cookie]) -> None:
        """
        Store ``cookies`` as received from ``origin``.

        Every cookie is processed even when some are refused.

        Raises:
            CookieRejectedError: After processing, if any cookie was refused
        """


class _SelectionJar(http.cookiejar.CookieJar):
    """Standard library jar that keeps creation order and exposes selection."""

    def __init__(self, policy: http.cookiejar.CookiePolicy | None = None) -> None:
        super().__init__(policy)
        self._created: dict[tuple[str, str, str], int] = {}
        self._seq = itertools.count()

    def _exists(self, ident: tuple[str, str, str]) -> bool:
        domain, path, name = ident
        return name in self._cookies.get(domain, {}).get(path, {})

    def clear(self, domain: str | None = None, path: str | None = None, name: str | None = None) -> None:
        super().clear(domain, path, name)
        # Covers expiry pruning too, which clears cookie by cookie.
        self._created = {ident: seq for ident, seq in self._created.items() if self._exists(ident)}

    def select(self, request: urllib.request.Request) -> list[http.cookiejar.Cookie]:
        """
        Return the cookies the policy allows for ``request``'s origin.

        An origin has no path, so cookies under every path are included.
        """
        self.clear_expired_cookies()
        found: list[http.cookiejar.Cookie] = []
        with self._cookies_lock:
            self._policy._now = self._now = int(time.time())
            for domain, paths in self._cookies.items():
                if not self._policy.domain_return_ok(domain, request):
                    continue
                for cookies in paths.values():
                    found.extend(c for c in cookies.values() if self._policy.return_ok(c, request))
        # Longest path first, then oldest first.
        found.sort(key=lambda c: (-len(c.path), self._created.get((c.domain, c.path, c.name), 0)))
        return found

    def store(self, cookie: http.cookiejar.Cookie, request: urllib.request.Request) -> str | None:
        """Store ``cookie`` if the policy allows it; return a reason if not."""
        with self._cookies_lock:
            self._policy._now = self._now = int(time.time())
            if not self._policy.set_ok(cookie, request):
                return "refused by cookie policy"
            ident = (cookie.domain, cookie.path, cookie.name)
            if cookie.is_expired(self._now):
                # An expired cookie deletes the one it replaces.
                with suppress(KeyError):
                    self.clear(*ident)
                return None
            if not self._exists(ident):
                self._created[ident] = next(self._seq)
            self.set_cookie(cookie)
        return None


def _request_for(origin: Origin) -> urllib.request.Request:
    # Same host normalization as snapshot keys, so equivalent origins select alike.
    host = canonical_host(origin.host)
    if ":" in host:
        host = f"[{host}]"
    return urllib.request.Request(f"{origin.scheme.lower()}://{host}/")


def _to_stdlib(cookie: Cookie, request: urllib.request.Request) -> http.cookiejar.Cookie:
    if cookie.domain:
        domain = "." + cookie.domain.lower().lstrip(".")
        domain_specified = True
    else:
        domain = http.cookiejar.eff_request_host(request)[1]
        domain_specified = False
    rest: dict[str, str | None] = {}
    if cookie.http_only:
        rest["HttpOnly"] = None
    if cookie.same_site:
        rest["SameSite"] = cookie.same_site
    if cookie.raw_expires:
        rest["RawExpires"] = cookie.raw_expires
    expires = int(cookie.expires.timestamp()) if cookie.expires is not None else None
    return http.cookiejar.Cookie(
        version=0,
        name=cookie.name,
        value=cookie.value,
        port=None,
        port_specified=False,
        domain=domain,
        domain_specified=domain_specified,
        domain_initial_dot=domain_specified,
        path=cookie.path or "/",
        path_specified=bool(cookie.path),
        secure=cookie.secure,
        expires=expires,
        discard=expires is None,
        comment=None,
        comment_url=None,
        rest=rest,
    )


def _from_stdlib(cookie: http.cookiejar.Cookie) -> Cookie:
    expires = None
    if cookie.expires is not None:
        expires = datetime.fromtimestamp(cookie.expires, timezone.utc)
    return Cookie(
        name=cookie.name,
        value=cookie.value or "",
        domain=cookie.domain.lstrip(".") if cookie.domain_specified else "",
        path=cookie.path if cookie.path_specified else "",
        expires=expires,
        raw_expires=cookie.get_nonstandard_attr("RawExpires", "") or "",
        secure=cookie.secure,
        http_only=cookie.has_nonstandard_attr("HttpOnly"),
        same_site=cookie.get_nonstandard_attr("SameSite", "") or "",
    )


class StdlibEngine:
    """
    Engine backed by :class:`http.cookiejar.CookieJar`.

    Args:
        policy: Cookie policy to apply (default: ``DefaultCookiePolicy()``)
    """

    def __init__(self, policy: http.cookiejar.CookiePolicy | None = None) -> None:
        self.policy = policy or http.cookiejar.DefaultCookiePolicy()
        self._jar = _SelectionJar(self.policy)

    def cookies(self, origin: Origin) -> list[Cookie]:
        request = _request_for(origin)
        return [_from_stdlib(c) for c in self._jar.select(request)]

    def set_cookies(self, origin: Origin, cookies: Iterable[Cookie]) -> None:
        request = _request_for(origin)
        rejected: list[tuple[Cookie, str]] = []
        for cookie in cookies:
            if not cookie.name:
                rejected.append((cookie, "empty cookie name"))
                continue
            reason = self._jar.store(_to_stdlib(cookie, request), request)
            if reason is not None:
                rejected.append((cookie, reason))
        if rejected:
            logger.debug("%s refused %d cookie(s)", origin.url, len(rejected))
            raise CookieRejectedError(rejected)

    def __len__(self) -> int:
        return len(self._jar)

    def __repr__(self) -> str:
        return f"<StdlibEngine {len(self._jar)} cookies>"
