"""
Debounce helper.

Coalesces bursts of calls into a single call that runs after a quiet
period. Each trigger cancels the pending timer and starts a new one, so
only the latest arguments are delivered.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """Timer-based call coalescing."""

    def __init__(self, wait_ms: int, callback: Callable[..., None]):
        self.wait_ms = wait_ms
        self.callback = callback
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self, *args, **kwargs):
        """Schedule the callback, replacing any pending call."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            self._timer = threading.Timer(self.wait_ms / 1000.0, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def flush(self):
        """Run the pending call now, if there is one."""
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
        self._fire()

    def cancel(self):
        """Drop the pending call."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    def _fire(self):
        with self._lock:
            pending = self._pending
            self._timer = None
            self._pending = None
        if pending is None:
            return
        args, kwargs = pending
        logger.debug(f"Debounced call fired after {self.wait_ms} ms")
        self.callback(*args, **kwargs)
