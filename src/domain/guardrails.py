"""Domain Guardrails - Bounded Retry for Transient Store Failures.

This module provides the RetryPolicy that protects the export pipeline from
transient document-store failures (dropped connections, network timeouts).
A query that fails with a retryable error is attempted again after an
exponentially growing delay, up to a fixed number of attempts. Any other
exception propagates immediately.

Architecture:
    - Pure domain logic with no infrastructure dependencies
    - The retryable exception types are injected by the adapter that knows them
    - The sleep function is injectable so tests never wait
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class RetryConfig:
    """Configuration for RetryPolicy behavior.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1)
        backoff_factor: Base delay in seconds; attempt n waits backoff_factor * 2 ** (n - 1)
        max_backoff: Upper bound for a single delay in seconds
    """
    max_attempts: int = 3
    backoff_factor: float = 0.5
    max_backoff: float = 10.0


class RetryExhaustedError(Exception):
    """Raised when every attempt of a retried operation failed.

    Attributes:
        operation: Name of the operation that was retried
        attempts: Number of attempts made
        last_error: The exception raised by the final attempt
    """

    def __init__(self, message: str, operation: str, attempts: int, last_error: BaseException):
        super().__init__(message)
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


class RetryPolicy:
    """Bounded exponential-backoff retry for idempotent read operations.

    Example Usage:
        ```python
        policy = RetryPolicy(
            RetryConfig(max_attempts=3, backoff_factor=0.5),
            retry_on=(AutoReconnect, NetworkTimeout)
        )
        documents = policy.call("find Patient", lambda: list(collection.find(query)))
        ```
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        retry_on: tuple[type[BaseException], ...] = (),
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize RetryPolicy.

        Parameters:
            config: Retry configuration (uses defaults if None)
            retry_on: Exception types that are considered transient
            sleep: Function used to wait between attempts
        """
        self.config = config or RetryConfig()
        if self.config.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.retry_on = retry_on
        self._sleep = sleep
        self._total_retries = 0

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        delay = self.config.backoff_factor * (2 ** (attempt - 1))
        return min(delay, self.config.max_backoff)

    def call(self, operation: str, func: Callable[[], T]) -> T:
        """Run ``func``, retrying on transient errors.

        Parameters:
            operation: Human-readable name used in log messages
            func: Zero-argument callable to run

        Returns:
            The value returned by ``func``

        Raises:
            RetryExhaustedError: If all attempts failed with a retryable error
            Exception: Any non-retryable error raised by ``func``
        """
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                return func()
            except self.retry_on as e:
                if attempt == self.config.max_attempts:
                    logger.error(f"{operation} failed after {attempt} attempt(s): {e}")
                    raise RetryExhaustedError(
                        f"{operation} failed after {attempt} attempt(s): {e}",
                        operation=operation,
                        attempts=attempt,
                        last_error=e
                    ) from e
                delay = self.delay_for(attempt)
                self._total_retries += 1
                logger.warning(
                    f"{operation} failed (attempt {attempt}/{self.config.max_attempts}): {e}. "
                    f"Retrying in {delay:.2f}s"
                )
                self._sleep(delay)
        raise AssertionError("unreachable")

    def get_statistics(self) -> dict:
        return {
            'max_attempts': self.config.max_attempts,
            'backoff_factor': self.config.backoff_factor,
            'total_retries': self._total_retries,
        }
