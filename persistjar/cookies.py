from __future__ import annotations

import io
import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from typing import IO

from .engine import Engine, StdlibEngine
from .errors import (
    CookieRejectedError,
    DeserializationError,
    JarError,
    KeyDecodeError,
    ReplayError,
)
from .models import Cookie, parse_set_cookie_headers
from .origin import Origin, as_origin, key_of, origin_of
from .serialize import decode_store, encode_store

logger = logging.getLogger(__name__)


class CookieJar:
    """
    Cookie jar that keeps a serializable snapshot of a selection engine.

    Every ``set_cookies`` call goes to the engine first; the snapshot entry
    for that origin is then overwritten with what the engine now returns. The
    snapshot is what gets encoded, and decoding replays it into the engine.

    Not thread-safe: guard the whole jar with one lock if it is shared.

    Args:
        engine: Selection engine to delegate to (default: a new ``StdlibEngine``)
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self.engine: Engine = engine if engine is not None else StdlibEngine()
        self.store: dict[str, list[Cookie]] = {}

    def cookies(self, origin: Origin | str) -> list[Cookie]:
        return self.engine.cookies(as_origin(origin))

    def set_cookies(self, origin: Origin | str, cookies: Iterable[Cookie]) -> None:
        """
        Hand ``cookies`` to the engine and refresh the snapshot for ``origin``.

        Raises:
            CookieRejectedError: If the engine refused some cookies; the
                accepted ones are stored and the snapshot is still refreshed
        """
        origin = as_origin(origin)
        key = key_of(origin)
        cookies = list(cookies)
        try:
            self.engine.set_cookies(origin, cookies)
        except CookieRejectedError as exc:
            logger.warning("Rejected %d cookie(s) from %s", len(exc.rejected), origin.url)
            raise
        finally:
            self.store[key] = self.engine.cookies(origin)
            # One engine serves every bucket; other schemes and subdomains may have changed too.
            self._sync_store()
        logger.debug("Stored %d cookie(s) for %s", len(self.store[key]), origin.url)

    def update_store(self, origin: Origin | str) -> None:
        """Recompute the snapshot entry for ``origin`` from the engine."""
        origin = as_origin(origin)
        self.store[key_of(origin)] = self.engine.cookies(origin)

    def _sync_store(self) -> None:
        # Undecodable keys are left alone so replay can still report them.
        for key in list(self.store):
            try:
                origin = origin_of(key)
            except KeyDecodeError:
                continue
            self.store[key] = self.engine.cookies(origin)

    def refresh(self) -> None:
        """
        Replay every snapshot entry into the engine.

        All entries are applied before the snapshot is recomputed, so an
        entry is never overwritten before its own cookies were replayed. A
        bad entry does not stop the others from being replayed.

        Raises:
            ReplayError: Listing each ``KeyDecodeError`` or
                ``CookieRejectedError`` met along the way
        """
        errors: list[JarError] = []
        for key, cookies in list(self.store.items()):
            try:
                origin = origin_of(key)
            except KeyDecodeError as exc:
                logger.warning("Skipping snapshot entry: %s", exc)
                errors.append(exc)
                continue
            try:
                self.engine.set_cookies(origin, cookies)
            except CookieRejectedError as exc:
                logger.warning("Rejected %d cookie(s) from %s", len(exc.rejected), origin.url)
                errors.append(exc)
        self._sync_store()
        logger.debug("Replayed %d snapshot entries (%d failed)", len(self.store), len(errors))
        if errors:
            raise ReplayError(errors)

    def merge(self, other: CookieJar | Mapping[str, Sequence[Cookie]]) -> None:
        """Copy another jar's snapshot entries into this one and replay."""
        entries = other.store if isinstance(other, CookieJar) else other
        for key, cookies in entries.items():
            self.store[key] = list(cookies)
        self.refresh()

    # HTTP layer hooks

    def set_from_headers(self, headers: Iterable[tuple[str, str]], origin: Origin | str) -> None:
        cookies = parse_set_cookie_headers(headers)
        if cookies:
            self.set_cookies(origin, cookies)

    def cookie_header(self, origin: Origin | str) -> str | None:
        cookies = self.cookies(origin)
        if not cookies:
            return None
        return "; ".join(f"{c.name}={c.value}" for c in cookies)

    # Persistence

    def encode(self, fp: IO[bytes]) -> None:
        data = encode_store(self.store)
        fp.write(data)
        logger.debug("Encoded %d snapshot entries (%d bytes)", len(self.store), len(data))

    def decode(self, fp: IO[bytes]) -> None:
        """
        Replace the snapshot with the one read from ``fp`` and replay it.

        The jar is left untouched if the data cannot be decoded.

        Raises:
            DeserializationError: If the data is truncated or malformed
            ReplayError: If some decoded entries could not be replayed
        """
        data = fp.read()
        try:
            store = decode_store(data)
        except DeserializationError:
            logger.error("Failed to decode snapshot (%d bytes)", len(data))
            raise
        self.store = store
        logger.debug("Decoded %d snapshot entries", len(store))
        self.refresh()

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.encode(buf)
        return buf.getvalue()

    def from_bytes(self, data: bytes) -> None:
        self.decode(io.BytesIO(data))

    def save(self, file_path: str | os.PathLike[str]) -> None:
        with open(file_path, "wb") as f:
            self.encode(f)

    def load(self, file_path: str | os.PathLike[str]) -> None:
        with open(file_path, "rb") as f:
            self.decode(f)

    def __len__(self) -> int:
        return len(self.store)

    def __contains__(self, origin: object) -> bool:
        if not isinstance(origin, (Origin, str)):
            return False
        try:
            key = key_of(as_origin(origin))
        except ValueError:
            return False
        return key in self.store

    def __str__(self) -> str:
        lines: list[str] = []
        for key in self.store:
            try:
                origin = origin_of(key)
            except KeyDecodeError as exc:
                lines.append(f"Cookies for {key!r}: undecodable key ({exc.reason})")
                continue
            cookies = self.engine.cookies(origin)
            lines.append(f"Cookies for {origin.scheme}://{origin.host}")
            lines.append(f"Cookie count: {len(cookies)}")
            for i, cookie in enumerate(cookies):
                lines.append(f"--------cookie [{i}] --------")
                lines.append(f"Name\t= {cookie.name}")
                lines.append(f"Value\t= {cookie.value}")
                lines.append(f"Path\t= {cookie.path}")
                lines.append(f"Domain\t= {cookie.domain}")
                lines.append(f"Expires\t= {cookie.expires.isoformat() if cookie.expires else ''}")
                lines.append(f"RawExpires\t= {cookie.raw_expires}")
                lines.append(f"Secure\t= {cookie.secure}")
                lines.append(f"HttpOnly\t= {cookie.http_only}")
        return "\n".join(lines) + ("\n" if lines else "")

    def __repr__(self) -> str:
        return f"<CookieJar {len(self.store)} origins>"
