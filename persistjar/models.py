from __future__ import annotations

import time
from collections.abc import Iterable
from datetime import datetime, timezone
from http.cookiejar import http2time
from http.cookies import SimpleCookie

_FIELDS = (
    "name",
    "value",
    "domain",
    "path",
    "expires",
    "raw_expires",
    "secure",
    "http_only",
    "same_site",
)

_EPOCH = datetime.fromtimestamp(0, timezone.utc)
_LATEST = datetime.max.replace(tzinfo=timezone.utc)


def _expires_after(now: float, max_age: int) -> datetime:
    if max_age <= 0:
        # Non-positive Max-Age expires the cookie immediately.
        return _EPOCH
    try:
        return datetime.fromtimestamp(now + max_age, timezone.utc)
    except (OverflowError, OSError, ValueError):
        return _LATEST


class Cookie:
    """
    A single cookie record as carried between the engine and the snapshot.

    The jar never interprets these fields; it only moves them around. An empty
    ``domain`` means a host-only cookie, ``expires=None`` a session cookie.
    """

    def __init__(
        self,
        name: str,
        value: str,
        domain: str = "",
        path: str = "",
        expires: datetime | None = None,
        raw_expires: str = "",
        secure: bool = False,
        http_only: bool = False,
        same_site: str = "",
    ) -> None:
        if expires is not None and expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        self.name = name
        self.value = value
        self.domain = domain
        self.path = path
        self.expires = expires
        self.raw_expires = raw_expires
        self.secure = secure
        self.http_only = http_only
        self.same_site = same_site

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires is None:
            return False
        if now is None:
            now = time.time()
        return self.expires.timestamp() <= now

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {field: getattr(self, field) for field in _FIELDS}
        if self.expires is not None:
            out["expires"] = self.expires.astimezone(timezone.utc).isoformat()
        return out

    @classmethod
    def from_dict(cls, data: object) -> Cookie:
        """
        Build a cookie from the mapping produced by :meth:`to_dict`.

        Raises:
            TypeError: If ``data`` is not a mapping or a field has the wrong type
            ValueError: If a field is missing or ``expires`` is not ISO-8601
        """
        if not isinstance(data, dict):
            raise TypeError(f"cookie record must be an object, got {type(data).__name__}")
        unknown = set(data) - set(_FIELDS)
        if unknown:
            raise ValueError(f"unknown cookie fields: {sorted(unknown)}")
        for field in ("name", "value"):
            if field not in data:
                raise ValueError(f"cookie record missing {field!r}")
        kwargs: dict[str, object] = {}
        for field in ("name", "value", "domain", "path", "raw_expires", "same_site"):
            if field in data:
                if not isinstance(data[field], str):
                    raise TypeError(f"cookie field {field!r} must be a string")
                kwargs[field] = data[field]
        for field in ("secure", "http_only"):
            if field in data:
                if not isinstance(data[field], bool):
                    raise TypeError(f"cookie field {field!r} must be a boolean")
                kwargs[field] = data[field]
        expires = data.get("expires")
        if expires is not None:
            if not isinstance(expires, str):
                raise TypeError("cookie field 'expires' must be an ISO-8601 string or null")
            kwargs["expires"] = datetime.fromisoformat(expires)
        return cls(**kwargs)

    @classmethod
    def from_set_cookie(cls, header: str, now: float | None = None) -> list[Cookie]:
        """Parse one ``Set-Cookie`` header value into cookie records."""
        if now is None:
            now = time.time()
        parsed = SimpleCookie()
        parsed.load(header)
        out: list[Cookie] = []
        for morsel in parsed.values():
            raw_expires = morsel["expires"]
            expires = None
            # Max-Age wins over Expires.
            if morsel["max-age"]:
                try:
                    expires = _expires_after(now, int(morsel["max-age"]))
                except ValueError:
                    expires = None
            if expires is None and raw_expires:
                stamp = http2time(raw_expires)
                if stamp is not None:
                    expires = datetime.fromtimestamp(stamp, timezone.utc)
            out.append(
                cls(
                    name=morsel.key,
                    value=morsel.value,
                    domain=morsel["domain"].lower().lstrip("."),
                    path=morsel["path"],
                    expires=expires,
                    raw_expires=raw_expires,
                    secure=bool(morsel["secure"]),
                    http_only=bool(morsel["httponly"]),
                    same_site=morsel["samesite"],
                )
            )
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cookie):
            return NotImplemented
        return all(getattr(self, field) == getattr(other, field) for field in _FIELDS)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<Cookie {self.name}={self.value} for {self.domain or '<host>'}{self.path or '/'}>"


def parse_set_cookie_headers(headers: Iterable[tuple[str, str]], now: float | None = None) -> list[Cookie]:
    cookies: list[Cookie] = []
    for name, value in headers:
        if name.lower() != "set-cookie":
            continue
        cookies.extend(Cookie.from_set_cookie(value, now=now))
    return cookies
