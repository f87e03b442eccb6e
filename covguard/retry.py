"""Bounded retries with backoff for remote calls.

One primitive serves both comment discovery (linear backoff, fixed
attempt budget) and status pushes (exponential backoff from
configuration). Built on tenacity; there is no jitter so delays are
deterministic.
"""

import functools
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_base,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_incrementing,
)

from covguard.adapters.base import GitPlatformError
from covguard.config import RetryConfig
from covguard.deadline import Deadline

LOG = logging.getLogger("covguard.retry")

T = TypeVar("T")


class RetryPolicy:
    """Run a fallible operation up to ``max_retries + 1`` times.

    Exponential mode waits ``retry_delay * backoff_factor ** (n - 1)``
    seconds before retry ``n``; linear mode waits ``n * retry_delay``.
    Only exceptions in ``retry_on`` and not in ``never_retry`` are retried;
    anything else propagates at once. Exceptions in ``no_delay_on`` are
    retried without waiting.
    On exhaustion the last exception is re-raised.
    """

    def __init__(
        self,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        backoff_factor: float = 2.0,
        *,
        linear: bool = False,
        retry_on: tuple[type[BaseException], ...] = (GitPlatformError,),
        never_retry: tuple[type[BaseException], ...] = (),
        no_delay_on: tuple[type[BaseException], ...] = (),
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.backoff_factor = backoff_factor
        self.linear = linear
        self.retry_on = retry_on
        self.never_retry = never_retry
        self.no_delay_on = no_delay_on
        self._sleep = sleep
        if linear:
            self._backoff = wait_incrementing(start=retry_delay, increment=retry_delay)
        else:
            self._backoff = wait_exponential(multiplier=retry_delay, exp_base=backoff_factor)

    @classmethod
    def from_config(cls, config: RetryConfig, **kwargs: Any) -> "RetryPolicy":
        """Exponential policy from a RetryConfig section."""
        return cls(
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            backoff_factor=config.backoff_factor,
            **kwargs,
        )

    @classmethod
    def linear_attempts(cls, attempts: int, step: float = 1.0, **kwargs: Any) -> "RetryPolicy":
        """Linear policy given the total number of attempts."""
        return cls(max_retries=attempts - 1, retry_delay=step, linear=True, **kwargs)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def _should_retry(self) -> retry_base:
        condition: retry_base = retry_if_exception_type(self.retry_on)
        if self.never_retry:
            condition = condition & retry_if_not_exception_type(self.never_retry)
        return condition

    def _wait(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        if outcome is not None and isinstance(outcome.exception(), self.no_delay_on):
            return 0.0
        return self._backoff(retry_state)

    def _sleep_within(self, deadline: Deadline | None, seconds: float) -> None:
        if deadline is None:
            self._sleep(seconds)
        else:
            deadline.sleep(seconds, self._sleep)

    def call(self, fn: Callable[..., T], *args: Any, deadline: Deadline | None = None, **kwargs: Any) -> T:
        """Call ``fn(*args, **kwargs)`` under this policy.

        The deadline, if given, is checked before every attempt, caps the
        backoff sleeps and is passed on to ``fn`` as its ``deadline``
        keyword, so the whole loop stays within one budget.
        DeadlineExceeded is never retried.
        """
        if deadline is not None:
            kwargs["deadline"] = deadline

        def attempt() -> T:
            if deadline is not None:
                deadline.check(getattr(fn, "__name__", "call"))
            return fn(*args, **kwargs)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=self._should_retry(),
            sleep=functools.partial(self._sleep_within, deadline),
            before_sleep=before_sleep_log(LOG, logging.WARNING),
            reraise=True,
        )
        return retrying(attempt)
