"""
Email IR Retry Policy

Bounded retries with capped exponential backoff and per-attempt timeouts
for every external call (source-data fetch and inference).
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from .exceptions import RetryExhaustedError
from .security import sanitize_error_message

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for one class of external call."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: bool = True
    attempt_timeout: Optional[float] = None

    def delay_for(self, attempt: int) -> float:
        """
        Backoff before the attempt following `attempt` (1-based).

        Exponential in the attempt number, capped at max_delay. Jitter picks
        a value in the upper half of the window so the cap still holds.
        """
        delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        if self.jitter and delay > 0:
            delay = random.uniform(delay / 2, delay)
        return delay

    @classmethod
    def from_settings(cls, settings: Any, attempt_timeout: Optional[float] = None) -> "RetryPolicy":
        """Build a policy from application settings."""
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            jitter=settings.retry_jitter,
            attempt_timeout=attempt_timeout if attempt_timeout is not None else settings.retry_attempt_timeout,
        )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    name: str = "operation",
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    should_retry: Optional[Callable[[BaseException], bool]] = None,
) -> T:
    """
    Run `operation` until it succeeds or the policy is exhausted.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Attempts, backoff and per-attempt timeout
        name: Operation name used in logs and errors
        retry_on: Exception types that count as a failed attempt
        should_retry: Optional predicate; a False result re-raises immediately

    Returns:
        The operation's result

    Raises:
        RetryExhaustedError: every attempt failed
    """
    last_error: Optional[BaseException] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            if policy.attempt_timeout:
                return await asyncio.wait_for(operation(), timeout=policy.attempt_timeout)
            return await operation()

        except retry_on as e:
            last_error = e

            if should_retry is not None and not should_retry(e):
                logger.warning(f"{name} failed with non-retryable error: {sanitize_error_message(e)}")
                raise

            if attempt >= policy.max_attempts:
                break

            delay = policy.delay_for(attempt)
            logger.warning(
                f"{name} attempt {attempt}/{policy.max_attempts} failed: "
                f"{type(e).__name__}: {sanitize_error_message(e)}; retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)

    logger.error(f"{name} exhausted {policy.max_attempts} attempt(s)")
    raise RetryExhaustedError(name, policy.max_attempts, last_error)
