"""
Cancellation — Request-scoped stop signal for long-running work.

Every call that shells out to git or talks to the remote provider accepts
an optional ``Cancellation``. The HTTP surface creates one per request
with DOPPELGANGER_REQUEST_TIMEOUT as its deadline. The deadline is what
stops work in practice: a git subprocess still running when it passes is
killed, and a paginated API listing stops before its next page. Without a
timeout nothing is cancelled mid-request; the WSGI server runs the view to
completion even when the client has gone away.

## Usage

    cancel = Cancellation(timeout=30)
    executor.update_remote(path, cancel=cancel)
    ...
    cancel.cancel()
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from .errors import CancelledError


class Cancellation:
    """A one-shot stop flag with an optional deadline."""

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; returns True as soon as the token fires."""
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        return self._event.wait(seconds) or self.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CancelledError()


def is_cancelled(cancel: Optional[Cancellation]) -> bool:
    return cancel is not None and cancel.cancelled
