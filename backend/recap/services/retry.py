"""Bounded fixed-delay retry policy for upstream calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from ..constants import FOLLOWUP_MAX_ATTEMPTS, FOLLOWUP_RETRY_DELAY_SECONDS
from ..errors import is_transient_overload

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an async call a bounded number of times with a fixed delay.

    Only errors matching ``retryable`` are retried; anything else, and the
    last retryable error once attempts are exhausted, is re-raised unchanged.

    Attributes:
        max_attempts: Total attempts including the first call
        delay_seconds: Fixed wait between attempts
        retryable: Predicate deciding whether an error is worth another attempt
        sleep: Awaitable sleep function (swapped out in tests)
    """

    max_attempts: int = FOLLOWUP_MAX_ATTEMPTS
    delay_seconds: float = FOLLOWUP_RETRY_DELAY_SECONDS
    retryable: Callable[[BaseException], bool] = is_transient_overload
    sleep: Callable[[float], Awaitable[Any]] = field(default=asyncio.sleep, compare=False)

    async def call(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Await ``fn(*args, **kwargs)`` under this policy and return its result."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception(self.retryable),
            sleep=self.sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await fn(*args, **kwargs)
        return result
