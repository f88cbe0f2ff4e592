from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

from .exceptions import FetchCancelled


class FetchContext:
    """
    Cancellation handle shared by every fetch of one request.

    A context is cancelled explicitly via `cancel()` or implicitly once its deadline
    passes. Fetchers register callbacks (e.g. closing an in-flight response) and
    sleep through `wait()` so both abort as soon as the request is abandoned.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._deadline: Optional[float] = None
        self._timer: Optional[threading.Timer] = None
        if timeout is not None:
            self._deadline = time.monotonic() + timeout
        self.reason = "context cancelled"

    def _arm_deadline(self) -> None:
        # Callbacks must also fire when nobody polls `cancelled`. Caller holds the lock.
        if self._deadline is None or self._timer is not None:
            return
        delay = max(0.0, self._deadline - time.monotonic())
        self._timer = threading.Timer(delay, self.cancel, args=("deadline exceeded",))
        self._timer.daemon = True
        self._timer.start()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel("deadline exceeded")
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self, reason: str = "context cancelled") -> None:
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
            timer = self._timer
        if timer is not None:
            timer.cancel()
        for cb in callbacks:
            cb()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Run `callback` when the context is cancelled (immediately if it already is).

        Returns a function that unregisters the callback.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                self._arm_deadline()

                def unregister() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return unregister
        callback()
        return lambda: None

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; returns True if the context got cancelled meanwhile."""
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._event.wait(remaining)
            return self.cancelled
        self._event.wait(seconds)
        return self.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise FetchCancelled(self.reason)

    def child(self) -> "FetchContext":
        """A context cancelled together with this one, but also cancellable on its own."""
        ctx = FetchContext()
        ctx._deadline = self._deadline
        unregister = self.on_cancel(lambda: ctx.cancel(self.reason))
        ctx.on_cancel(unregister)
        return ctx
