"""Tests for persistjar.errors module."""

import pytest
from persistjar.errors import (
    JarError,
    KeyDecodeError,
    CookieRejectedError,
    DeserializationError,
    ReplayError,
)
from persistjar.models import Cookie


class TestErrorHierarchy:
    """Tests for error class hierarchy."""

    def test_jar_error_is_exception(self):
        """Test JarError inherits from Exception."""
        assert issubclass(JarError, Exception)

    @pytest.mark.parametrize(
        "error_class",
        [KeyDecodeError, CookieRejectedError, DeserializationError, ReplayError],
    )
    def test_errors_inherit_jar_error(self, error_class):
        """Test every persistjar error inherits from JarError."""
        assert issubclass(error_class, JarError)


class TestErrorInstantiation:
    """Tests for error attributes and messages."""

    def test_key_decode_error_carries_key(self):
        """Test KeyDecodeError keeps the offending key and reason."""
        err = KeyDecodeError("nonsense", "missing scheme separator")
        assert err.key == "nonsense"
        assert err.reason == "missing scheme separator"
        assert "nonsense" in str(err)

    def test_cookie_rejected_error_lists_cookies(self):
        """Test CookieRejectedError names each rejected cookie."""
        err = CookieRejectedError([(Cookie("a", "1"), "refused by cookie policy")])
        assert len(err.rejected) == 1
        assert "'a'" in str(err)
        assert "refused by cookie policy" in str(err)

    def test_deserialization_error_with_message(self):
        """Test DeserializationError can be raised with message."""
        with pytest.raises(DeserializationError, match="truncated"):
            raise DeserializationError("truncated")

    def test_replay_error_splits_errors(self):
        """Test ReplayError exposes key errors and rejections separately."""
        key_err = KeyDecodeError("bad", "missing scheme separator")
        rejected = CookieRejectedError([(Cookie("a", "1"), "empty cookie name")])
        err = ReplayError([key_err, rejected])
        assert err.errors == [key_err, rejected]
        assert err.key_errors == [key_err]
        assert err.rejections == [rejected]
        assert "2 snapshot entries" in str(err)

    def test_replay_error_singular_message(self):
        """Test ReplayError message for a single failure."""
        err = ReplayError([KeyDecodeError("bad", "missing scheme separator")])
        assert "1 snapshot entry" in str(err)
