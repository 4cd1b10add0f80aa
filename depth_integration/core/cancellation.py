"""Cooperative cancellation for long integration runs."""

import signal
import threading
from typing import Optional

from ..utils.logging import get_logger

logger = get_logger(__name__)


class CancellationToken:
    """Flag polled by the integrator between vertices / resources."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class SigintBreaker:
    """Turn Ctrl-C into a token cancellation while the context is active.

    Outside the main thread signal handlers cannot be installed; the token
    then only reacts to explicit `cancel()` calls.
    """

    def __init__(self, token: Optional[CancellationToken] = None):
        self.token = token or CancellationToken()
        self._previous_handler = None
        self._installed = False

    def _handle(self, signum, frame):
        logger.warning("Interrupt received, stopping after the current step")
        self.token.cancel()

    def __enter__(self) -> CancellationToken:
        if threading.current_thread() is threading.main_thread():
            self._previous_handler = signal.signal(signal.SIGINT, self._handle)
            self._installed = True
        return self.token

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._installed:
            previous = self._previous_handler
            signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)
            self._installed = False
