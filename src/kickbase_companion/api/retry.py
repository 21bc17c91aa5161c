"""
Retry policy for provider requests.

A fixed number of attempts with exponential backoff between them. Which
failures are worth another attempt is decided by a predicate, so the policy
can be tested without any network access.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """Raised when every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(str(last_error))


def _always_retry(exc: BaseException) -> bool:
    return True


@dataclass
class RetryPolicy:
    """
    Retry settings and execution.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay: Seconds to wait after the first failed attempt
        multiplier: Growth factor of the delay per further attempt
        is_retryable: Predicate deciding whether a failure gets another attempt
        sleep: Awaitable sleep, replaceable in tests
    """

    max_attempts: int = 3
    base_delay: float = 0.6
    multiplier: float = 2.0
    is_retryable: Callable[[BaseException], bool] = field(default=_always_retry)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based): 0.6s, 1.2s, 2.4s..."""
        return self.base_delay * self.multiplier ** (attempt - 1)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run an async operation under this policy.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt

        Returns:
            The first successful result

        Raises:
            The failure itself if it is not retryable
            RetryExhaustedError: If the last attempt failed with a retryable error
        """
        last_error: BaseException | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                if not self.is_retryable(e):
                    raise
                last_error = e
                logger.warning(f"Attempt {attempt}/{self.max_attempts} failed: {e}")

                if attempt < self.max_attempts:
                    delay = self.delay_for(attempt)
                    logger.debug(f"Waiting {delay:.1f}s before next attempt")
                    await self.sleep(delay)

        assert last_error is not None
        raise RetryExhaustedError(self.max_attempts, last_error)
