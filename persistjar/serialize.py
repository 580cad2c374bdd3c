"""Wire format for snapshot stores.

A snapshot is a UTF-8 JSON document::

    {"format": "persistjar", "version": 1,
     "store": {"https|example.com": [{"name": "SID", ...}, ...]}}

Output is compact and keeps insertion order, so encoding an unmodified store
twice yields the same bytes.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence

from .errors import DeserializationError
from .models import Cookie

logger = logging.getLogger(__name__)

FORMAT_NAME = "persistjar"
FORMAT_VERSION = 1


def encode_store(store: Mapping[str, Sequence[Cookie]]) -> bytes:
    payload = {
        "format": FORMAT_NAME,
        "version": FORMAT_VERSION,
        "store": {key: [cookie.to_dict() for cookie in cookies] for key, cookies in store.items()},
    }
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_store(data: bytes) -> dict[str, list[Cookie]]:
    """
    Parse a serialized snapshot into a new store mapping.

    Keys are returned as-is; checking that they decode to origins is left to
    replay so one bad key does not hide the others.

    Raises:
        DeserializationError: If ``data`` is truncated, malformed, or written
            by an unknown format or version
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DeserializationError(f"Snapshot is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise DeserializationError("Snapshot root must be an object")
    if payload.get("format") != FORMAT_NAME:
        raise DeserializationError(f"Unknown snapshot format: {payload.get('format')!r}")
    version = payload.get("version")
    if version != FORMAT_VERSION:
        raise DeserializationError(f"Unsupported snapshot version: {version!r}")
    entries = payload.get("store")
    if not isinstance(entries, dict):
        raise DeserializationError("Snapshot 'store' must be an object")

    store: dict[str, list[Cookie]] = {}
    for key, records in entries.items():
        if not isinstance(records, list):
            raise DeserializationError(f"Entry {key!r} must be a list of cookies")
        try:
            store[key] = [Cookie.from_dict(record) for record in records]
        except (TypeError, ValueError) as exc:
            raise DeserializationError(f"Bad cookie record under {key!r}: {exc}") from exc
    return store
