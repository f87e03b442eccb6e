"""Cooperative deadline shared by every remote call of a reporting cycle."""

import time
from collections.abc import Callable


class DeadlineExceeded(TimeoutError):
    """Raised when the time budget of an operation has been spent."""

    pass


class Deadline:
    """Absolute point in time (monotonic clock) after which work must stop.

    One deadline is created per reporting cycle and passed down to the
    adapter and the retry loop, so retries cannot extend the total budget.
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        """Seconds left (never negative)."""
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, operation: str = "operation") -> None:
        """Raise DeadlineExceeded if the deadline has passed."""
        if self.expired:
            raise DeadlineExceeded(f"deadline exceeded before {operation}")

    def timeout(self, default: float) -> float:
        """Per-request timeout: the default capped at the remaining time."""
        self.check("request")
        return min(default, self.remaining())

    def sleep(self, seconds: float, sleep: Callable[[float], None] = time.sleep) -> None:
        """Sleep unless that would run past the deadline.

        A sleep that cannot finish in time raises at once instead of
        waiting for the deadline to pass.
        """
        if seconds > 0 and seconds >= self.remaining():
            raise DeadlineExceeded(f"deadline exceeded: {seconds:.1f}s backoff exceeds remaining budget")
        sleep(seconds)
