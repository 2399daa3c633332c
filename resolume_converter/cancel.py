from __future__ import annotations

import signal
import threading
from typing import Any, Optional

from .errors import CancelledError


class CancelToken:
    """
    Shared cancellation signal for one converter run.

    Set from a signal handler (Ctrl+C) or by a caller; every blocking step of
    the pipeline checks it or waits on it.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledError(self.reason or "operation cancelled")

    def sleep(self, seconds: float) -> None:
        """Sleep up to `seconds`, raising CancelledError as soon as cancelled."""
        if self._event.wait(timeout=max(0.0, seconds)):
            raise CancelledError(self.reason or "operation cancelled")


def install_sigint_handler(token: CancelToken) -> None:
    """First Ctrl+C cancels the token; a second one interrupts immediately."""

    def handler(signum: int, frame: Any) -> None:
        if token.cancelled:
            raise KeyboardInterrupt
        print("\n[CANCEL] Interrupt received, stopping after the current step...")
        token.cancel("interrupted")

    signal.signal(signal.SIGINT, handler)
