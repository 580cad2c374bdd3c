from __future__ import annotations


class JarError(Exception):
    """Base error for persistjar."""


class KeyDecodeError(JarError):
    """Raised when a snapshot key cannot be turned back into an origin."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Malformed snapshot key {key!r}: {reason}")


class CookieRejectedError(JarError):
    """Raised when the selection engine refuses one or more cookies."""

    def __init__(self, rejected: list) -> None:
        self.rejected = list(rejected)
        names = ", ".join(f"{cookie.name!r} ({reason})" for cookie, reason in self.rejected)
        super().__init__(f"{len(self.rejected)} cookie(s) rejected: {names}")


class DeserializationError(JarError):
    """Raised when a serialized snapshot is truncated, corrupt or incompatible."""


class ReplayError(JarError):
    """Raised after replay when one or more snapshot entries failed to apply."""

    def __init__(self, errors: list[JarError]) -> None:
        self.errors = list(errors)
        super().__init__(
            f"Replay failed for {len(self.errors)} snapshot entr"
            f"{'y' if len(self.errors) == 1 else 'ies'}: "
            + "; ".join(str(err) for err in self.errors)
        )

    @property
    def key_errors(self) -> list[KeyDecodeError]:
        return [err for err in self.errors if isinstance(err, KeyDecodeError)]

    @property
    def rejections(self) -> list[CookieRejectedError]:
        return [err for err in self.errors if isinstance(err, CookieRejectedError)]
