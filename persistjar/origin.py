"""Canonical snapshot keys for request origins.

Keys follow a scheme+host policy: ``http`` and ``https`` origins for the same
host are stored in separate buckets, while host case, explicit ports and a
trailing root dot are normalized away because cookies do not depend on them.
"""

from __future__ import annotations

import ipaddress
from typing import NamedTuple
from urllib.parse import urlsplit

from .errors import KeyDecodeError

KEY_SEPARATOR = "|"
SCHEMES = ("http", "https")

_FORBIDDEN_HOST_CHARS = frozenset(KEY_SEPARATOR + "/\\?#@ \t\r\n[]")


class Origin(NamedTuple):
    """The (scheme, host[:port]) pair cookies are set and selected for."""

    scheme: str
    host: str

    @classmethod
    def from_url(cls, url: str) -> Origin:
        parsed = urlsplit(url)
        scheme = parsed.scheme.lower()
        if scheme not in SCHEMES:
            raise ValueError("Only http and https schemes are supported")
        host = parsed.netloc.rpartition("@")[2]
        if not host:
            raise ValueError(f"URL has no host: {url!r}")
        return cls(scheme, host)

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}/"


def as_origin(value: Origin | str) -> Origin:
    if isinstance(value, Origin):
        return value
    if isinstance(value, str):
        return Origin.from_url(value)
    raise TypeError(f"expected Origin or URL string, got {type(value).__name__}")


def has_port(host: str) -> bool:
    """
    Report whether ``host`` carries a port.

    ``host`` may be a host name, an IPv4 address or an IPv6 literal. Bracketed
    literals are checked first since a bare IPv6 address is full of colons.
    """
    if host.startswith("["):
        return "]:" in host
    colons = host.count(":")
    return colons == 1


def _split_port(host: str) -> str:
    if host.startswith("["):
        end = host.find("]")
        if end == -1:
            raise ValueError(f"unterminated IPv6 literal: {host!r}")
        rest = host[end + 1 :]
        if rest and not (rest.startswith(":") and rest[1:].isdigit()):
            raise ValueError(f"invalid port in host: {host!r}")
        return host[1:end]
    if has_port(host):
        name, _, port = host.rpartition(":")
        if port and not port.isdigit():
            raise ValueError(f"invalid port in host: {host!r}")
        return name
    return host


def canonical_host(host: str) -> str:
    """
    Return ``host`` lowercased, without port, IPv6 brackets or trailing dot.

    Raises:
        ValueError: If the host is empty or malformed
    """
    host = _split_port(host.strip().lower())
    if host.endswith("."):
        # Strip trailing dot from fully qualified domain names.
        host = host[:-1]
    if not host:
        raise ValueError("empty host")
    if ":" in host:
        ipaddress.IPv6Address(host)
    elif _FORBIDDEN_HOST_CHARS.intersection(host):
        raise ValueError(f"invalid characters in host: {host!r}")
    return host


def key_of(origin: Origin) -> str:
    scheme = origin.scheme.lower()
    if scheme not in SCHEMES:
        raise ValueError(f"unsupported scheme: {origin.scheme!r}")
    return f"{scheme}{KEY_SEPARATOR}{canonical_host(origin.host)}"


def origin_of(key: str) -> Origin:
    """
    Rebuild the origin a snapshot key was derived from.

    Raises:
        KeyDecodeError: If ``key`` was not produced by :func:`key_of`
    """
    if not isinstance(key, str):
        raise KeyDecodeError(repr(key), "key is not a string")
    scheme, sep, host = key.partition(KEY_SEPARATOR)
    if not sep:
        raise KeyDecodeError(key, "missing scheme separator")
    if scheme not in SCHEMES:
        raise KeyDecodeError(key, f"unknown scheme {scheme!r}")
    if not host:
        raise KeyDecodeError(key, "empty host")
    # IPv6 literals are stored bare and need brackets in a URL.
    url_host = f"[{host}]" if ":" in host else host
    try:
        canonical = canonical_host(url_host)
    except ValueError as exc:
        raise KeyDecodeError(key, str(exc)) from exc
    if canonical != host:
        raise KeyDecodeError(key, "host is not in canonical form")
    return Origin(scheme, url_host)
