"""
Retry manager with exponential backoff.

Only errors flagged `recoverable` (network failures and timeouts) are
retried. Anything else surfaces on the first occurrence. When retries are
exhausted the last error itself is raised, so callers still see the terminal
error kind.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .exceptions import TranslationError

logger = logging.getLogger(__name__)


class RetryStrategy(Enum):
    """Retry strategies for transient errors."""
    EXPONENTIAL = "exponential"  # Standard exponential backoff
    LINEAR = "linear"  # Linear backoff
    IMMEDIATE = "immediate"  # No delay, retry immediately
    NONE = "none"  # Don't retry


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_retries: Retries after the initial attempt
        initial_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for a single delay, before jitter
        backoff_factor: Multiplier for exponential backoff
        jitter: Random extra delay as a fraction of the delay (0.0-1.0)
        strategy: Retry strategy to use
    """
    max_retries: int = 2
    initial_delay: float = 0.5
    max_delay: float = 8.0
    backoff_factor: float = 2.0
    jitter: float = 0.1
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL

    @property
    def max_attempts(self) -> int:
        if self.strategy == RetryStrategy.NONE:
            return 1
        return self.max_retries + 1


class RetryManager:
    """Runs an async operation, retrying recoverable failures."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Callable[[], float] = random.random
    ):
        """
        Args:
            config: Retry configuration
            sleep: Coroutine used to wait between attempts
            rng: Source of jitter, returning a float in [0, 1)
        """
        self.config = config or RetryConfig()
        self._sleep = sleep
        self._rng = rng

    def calculate_delay(self, retry_number: int) -> float:
        """Delay before retry number `retry_number` (1-based)."""
        config = self.config
        if config.strategy in (RetryStrategy.IMMEDIATE, RetryStrategy.NONE):
            return 0.0

        if config.strategy == RetryStrategy.LINEAR:
            delay = config.initial_delay * retry_number
        else:  # EXPONENTIAL
            delay = config.initial_delay * (config.backoff_factor ** (retry_number - 1))

        delay = min(delay, config.max_delay)

        if config.jitter > 0:
            delay += delay * config.jitter * self._rng()

        return delay

    async def execute_with_retry(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        operation_id: Optional[str] = None,
        on_retry: Optional[Callable[[TranslationError, int, float], None]] = None,
        **kwargs
    ) -> Any:
        """Execute a function with retry logic.

        Args:
            func: Async function to execute
            *args: Positional arguments for func
            operation_id: Identifier used in log messages
            on_retry: Callback called before each retry (error, attempt, delay)
            **kwargs: Keyword arguments for func

        Returns:
            Result of func

        Raises:
            TranslationError: The first non-recoverable error, or the last
                recoverable one once attempts are exhausted. Its `attempts`
                attribute holds the number of attempts made.
        """
        op_id = operation_id or f"op_{id(func)}"
        max_attempts = self.config.max_attempts
        attempt = 0

        while True:
            attempt += 1
            try:
                result = await func(*args, **kwargs)
                if attempt > 1:
                    logger.info(f"Operation {op_id} succeeded after {attempt} attempts")
                return result

            except TranslationError as error:
                error.attempts = attempt

                if not error.recoverable:
                    logger.debug(f"Non-recoverable error in {op_id}: {error}")
                    raise

                if attempt >= max_attempts:
                    logger.error(f"Retry exhausted for {op_id} after {attempt} attempts: {error}")
                    raise

                delay = self.calculate_delay(attempt)
                logger.warning(
                    f"Attempt {attempt}/{max_attempts} failed for {op_id}: "
                    f"{error.kind}: {error.message}. Retrying in {delay:.2f}s..."
                )

                if on_retry:
                    try:
                        on_retry(error, attempt, delay)
                    except Exception as callback_error:
                        logger.warning(f"Error in on_retry callback: {callback_error}")

                if delay > 0:
                    await self._sleep(delay)
