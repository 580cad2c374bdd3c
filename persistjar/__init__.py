from persistjar.cookies import CookieJar
from persistjar.engine import Engine, StdlibEngine
from persistjar.errors import (
    JarError,
    KeyDecodeError,
    CookieRejectedError,
    DeserializationError,
    ReplayError,
)
from persistjar.models import Cookie
from persistjar.origin import Origin, key_of, origin_of, canonical_host

__all__ = [
    "CookieJar",
    "Cookie",
    "Engine",
    "StdlibEngine",
    "Origin",
    "key_of",
    "origin_of",
    "canonical_host",
    "JarError",
    "KeyDecodeError",
    "CookieRejectedError",
    "DeserializationError",
    "ReplayError",
]
