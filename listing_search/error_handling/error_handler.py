"""
Error handler with retry logic for the listing search service.

Implements exponential backoff and timeout escalation for operations that are
safe to repeat, such as establishing the broker connection at startup.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable
from datetime import datetime


logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior with exponential backoff.

    Attributes:
        max_retries: Maximum number of attempts
        initial_timeout_seconds: Timeout for the first attempt
        timeout_multiplier: Multiplier for timeout escalation on each retry
        base_delay_seconds: Backoff delay before the second attempt
    """
    max_retries: int = 5
    initial_timeout_seconds: float = 10.0
    timeout_multiplier: float = 1.5
    base_delay_seconds: float = 1.0

    def get_timeout(self, attempt: int) -> float:
        """
        Calculate timeout for a specific retry attempt.

        timeout = initial_timeout_seconds * (timeout_multiplier ^ attempt)

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Timeout value in seconds for the given attempt
        """
        return self.initial_timeout_seconds * (self.timeout_multiplier ** attempt)

    def get_backoff_delay(self, attempt: int) -> float:
        """
        Calculate backoff delay after a failed attempt.

        delay = base_delay_seconds * (2 ^ attempt)

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Delay in seconds before the next attempt
        """
        return self.base_delay_seconds * (2 ** attempt)


class ErrorHandler:
    """
    Runs async operations with exponential backoff and timeout escalation.

    Attributes:
        config: Retry configuration
    """

    def __init__(self, config: RetryConfig = None):
        self.config = config or RetryConfig()

    async def retry_with_backoff(
        self,
        operation: Callable,
        *args,
        **kwargs
    ) -> Any:
        """
        Execute operation with exponential backoff retry logic.

        If the operation accepts a ``timeout`` keyword argument, each attempt
        receives the escalated timeout for that attempt.

        Args:
            operation: Async callable to execute
            *args: Positional arguments for the operation
            **kwargs: Keyword arguments for the operation

        Returns:
            Result from the first successful attempt

        Raises:
            Exception: The last exception encountered if all retries are exhausted
        """
        name = getattr(operation, "__name__", repr(operation))
        accepts_timeout = _accepts_keyword(operation, "timeout")
        last_exception = None

        for attempt in range(self.config.max_retries):
            try:
                logger.info(f"Attempt {attempt + 1}/{self.config.max_retries} for operation {name}")

                if accepts_timeout:
                    kwargs["timeout"] = self.config.get_timeout(attempt)

                result = await operation(*args, **kwargs)

                logger.info(f"Operation {name} succeeded on attempt {attempt + 1}")
                return result

            except Exception as e:
                last_exception = e
                self._log_error(name, attempt + 1, e)

                if attempt == self.config.max_retries - 1:
                    logger.error(
                        f"Operation {name} failed after {self.config.max_retries} attempts. "
                        f"Final error: {str(e)}"
                    )
                    break

                backoff_delay = self.config.get_backoff_delay(attempt)
                logger.info(f"Waiting {backoff_delay:.1f}s before retry...")
                await asyncio.sleep(backoff_delay)

        raise last_exception

    def _log_error(self, operation_name: str, attempt: int, error: Exception) -> None:
        """Log a failed attempt with timestamp and error type."""
        context = {
            'timestamp': datetime.now().isoformat(),
            'operation': operation_name,
            'attempt': f"{attempt}/{self.config.max_retries}",
            'error_type': type(error).__name__,
            'error_message': str(error),
        }
        logger.error(
            f"Operation failed: {operation_name} | "
            f"Attempt: {attempt}/{self.config.max_retries} | "
            f"Error: {type(error).__name__}: {str(error)}"
        )
        logger.debug(f"Full error context: {context}")


def _accepts_keyword(operation: Callable, keyword: str) -> bool:
    try:
        parameters = inspect.signature(operation).parameters
    except (TypeError, ValueError):
        return False
    return keyword in parameters or any(
        p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters.values()
    )
