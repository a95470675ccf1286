"""
Tests for the request-scoped cancellation token.
"""

from __future__ import annotations

import pytest

from doppelganger.cancellation import Cancellation, is_cancelled
from doppelganger.errors import CancelledError


class TestCancellation:

    def test_fresh_token_not_cancelled(self):
        cancel = Cancellation()
        assert cancel.cancelled is False
        assert cancel.remaining() is None
        cancel.raise_if_cancelled()

    def test_cancel(self):
        cancel = Cancellation()
        cancel.cancel()
        assert cancel.cancelled is True
        with pytest.raises(CancelledError):
            cancel.raise_if_cancelled()

    def test_expired_deadline(self):
        cancel = Cancellation(timeout=0.001)
        assert cancel.wait(1) is True
        assert cancel.cancelled is True
        assert cancel.remaining() == 0.0

    def test_remaining_bounded_by_timeout(self):
        cancel = Cancellation(timeout=60)
        assert 0 < cancel.remaining() <= 60

    def test_wait_returns_false_when_not_fired(self):
        assert Cancellation().wait(0.01) is False


class TestIsCancelled:

    def test_none_is_never_cancelled(self):
        assert is_cancelled(None) is False

    def test_cancelled_token(self):
        cancel = Cancellation()
        cancel.cancel()
        assert is_cancelled(cancel) is True
