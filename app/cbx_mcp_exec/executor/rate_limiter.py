"""
Sliding-window rate limiter.

Keeps, per caller, the timestamps of recent invocations and refuses a new
one once the count inside the last 60 seconds reaches the ceiling.
Rejected attempts are not recorded.
"""

import threading
import time
from typing import Callable, Optional

from cbx_mcp_exec.config.models import DEFAULT_MAX_EXECUTIONS_PER_MINUTE
from cbx_mcp_exec.executor.types import RateLimitExceededError

WINDOW_MS = 60_000
DEFAULT_CALLER = "default"


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class RateLimiter:
    """
    Per-caller sliding one-minute window.

    Safe to share between concurrent calls: each check runs evict,
    compare and append under one lock.
    """

    def __init__(
        self,
        max_per_minute: Optional[int] = None,
        clock: Callable[[], float] = _monotonic_ms,
    ):
        """
        Args:
            max_per_minute: Ceiling per caller (default 10)
            clock: Millisecond clock, injectable for tests
        """
        self.max_per_minute = max_per_minute or DEFAULT_MAX_EXECUTIONS_PER_MINUTE
        self._clock = clock
        self._executions: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def check(self, caller_id: str = DEFAULT_CALLER) -> None:
        """
        Record an invocation for caller_id, or refuse it.

        Raises:
            RateLimitExceededError: If the caller is at the ceiling
        """
        with self._lock:
            now = self._clock()
            recent = [t for t in self._executions.get(caller_id, ()) if now - t < WINDOW_MS]

            if len(recent) >= self.max_per_minute:
                self._executions[caller_id] = recent
                raise RateLimitExceededError(caller_id, self.max_per_minute)

            recent.append(now)
            self._executions[caller_id] = recent
            self._evict_idle(now)

    def remaining(self, caller_id: str = DEFAULT_CALLER) -> int:
        """Invocations left for caller_id in the current window."""
        with self._lock:
            now = self._clock()
            recent = [t for t in self._executions.get(caller_id, ()) if now - t < WINDOW_MS]
            return max(self.max_per_minute - len(recent), 0)

    def reset(self) -> None:
        with self._lock:
            self._executions.clear()

    def _evict_idle(self, now: float) -> None:
        # Drop callers whose newest entry has aged out
        idle = [
            caller
            for caller, stamps in self._executions.items()
            if not stamps or now - stamps[-1] >= WINDOW_MS
        ]
        for caller in idle:
            del self._executions[caller]
