"""
Property-based tests for error handling.

These tests verify universal properties that should hold for all retry
operations across randomly generated inputs.
"""

import pytest
import asyncio
from unittest.mock import patch
from hypothesis import given, settings, strategies as st
from listing_search.error_handling.error_handler import ErrorHandler, RetryConfig


# Strategy for generating retry configuration values
retry_counts = st.integers(min_value=1, max_value=10)
timeout_values = st.floats(min_value=0.5, max_value=60.0)
multiplier_values = st.floats(min_value=1.1, max_value=3.0)
attempt_numbers = st.integers(min_value=0, max_value=9)


@given(
    initial_timeout=timeout_values,
    multiplier=multiplier_values,
    attempt=attempt_numbers
)
@settings(max_examples=100)
def test_retry_timeout_escalation(initial_timeout, multiplier, attempt):
    """
    Each retry attempt uses a timeout greater than the previous attempt,
    scaled by the configured multiplier.
    """
    config = RetryConfig(
        initial_timeout_seconds=initial_timeout,
        timeout_multiplier=multiplier
    )

    current_timeout = config.get_timeout(attempt)

    expected_timeout = initial_timeout * (multiplier ** attempt)
    assert current_timeout == pytest.approx(expected_timeout), \
        f"Timeout for attempt {attempt} should be {expected_timeout}, got {current_timeout}"

    next_timeout = config.get_timeout(attempt + 1)
    assert next_timeout > current_timeout, \
        f"Timeout should escalate: attempt {attempt + 1} ({next_timeout}s) " \
        f"should be > attempt {attempt} ({current_timeout}s)"
    assert next_timeout / current_timeout == pytest.approx(multiplier, rel=1e-6)


@given(
    max_retries=retry_counts,
    multiplier=multiplier_values
)
@settings(max_examples=100, deadline=None)
def test_retry_exhaustion_termination(max_retries, multiplier):
    """
    An operation that always fails is attempted exactly max_retries times and
    the last failure is raised.
    """
    handler = ErrorHandler(RetryConfig(
        max_retries=max_retries,
        timeout_multiplier=multiplier
    ))

    call_count = 0

    async def always_fails():
        nonlocal call_count
        call_count += 1
        raise ValueError(f"Simulated failure #{call_count}")

    # Mock asyncio.sleep to avoid delays during testing
    with patch('asyncio.sleep', return_value=None):
        with pytest.raises(ValueError) as exc_info:
            asyncio.run(handler.retry_with_backoff(always_fails))

    assert call_count == max_retries, \
        f"Operation should be attempted exactly {max_retries} times, was attempted {call_count} times"
    assert f"#{max_retries}" in str(exc_info.value), \
        f"Should raise the last failure (#{max_retries})"


@given(
    max_retries=retry_counts,
    success_on_attempt=st.integers(min_value=1, max_value=10)
)
@settings(max_examples=100, deadline=None)
def test_retry_succeeds_before_exhaustion(max_retries, success_on_attempt):
    """
    An operation that succeeds on attempt N <= max_retries returns its result
    without further attempts.
    """
    if success_on_attempt > max_retries:
        return

    handler = ErrorHandler(RetryConfig(max_retries=max_retries))

    call_count = 0

    async def fails_then_succeeds():
        nonlocal call_count
        call_count += 1
        if call_count < success_on_attempt:
            raise ConnectionError(f"Failure #{call_count}")
        return f"Success on attempt {call_count}"

    with patch('asyncio.sleep', return_value=None):
        result = asyncio.run(handler.retry_with_backoff(fails_then_succeeds))

    assert call_count == success_on_attempt
    assert result == f"Success on attempt {success_on_attempt}"


@given(max_retries=st.integers(min_value=1, max_value=6))
@settings(max_examples=30, deadline=None)
def test_escalated_timeout_passed_to_operation(max_retries):
    """Operations accepting a timeout keyword receive the escalated timeout per attempt."""
    config = RetryConfig(max_retries=max_retries, initial_timeout_seconds=2.0, timeout_multiplier=2.0)
    handler = ErrorHandler(config)
    seen = []

    async def connect(timeout: float = None):
        seen.append(timeout)
        raise ConnectionError("refused")

    with patch('asyncio.sleep', return_value=None):
        with pytest.raises(ConnectionError):
            asyncio.run(handler.retry_with_backoff(connect))

    assert seen == [config.get_timeout(i) for i in range(max_retries)]


def test_timeout_not_passed_when_not_accepted():
    """Operations without a timeout parameter are called with their own arguments only."""
    handler = ErrorHandler(RetryConfig(max_retries=1))

    async def add(a, b):
        return a + b

    assert asyncio.run(handler.retry_with_backoff(add, 2, 3)) == 5


@given(attempt=attempt_numbers)
@settings(max_examples=100)
def test_backoff_delay_exponential_growth(attempt):
    """
    Backoff delays double on every attempt: delay = base * (2 ^ attempt)
    """
    config = RetryConfig()

    delay = config.get_backoff_delay(attempt)

    expected_delay = 1.0 * (2 ** attempt)
    assert delay == expected_delay, \
        f"Backoff delay for attempt {attempt} should be {expected_delay}s, got {delay}s"
    assert config.get_backoff_delay(attempt + 1) == delay * 2


def test_backoff_sleeps_between_attempts_only():
    """No sleep follows the final failed attempt."""
    handler = ErrorHandler(RetryConfig(max_retries=3, base_delay_seconds=0.5))

    async def always_fails():
        raise RuntimeError("nope")

    with patch('asyncio.sleep', return_value=None) as mock_sleep:
        with pytest.raises(RuntimeError):
            asyncio.run(handler.retry_with_backoff(always_fails))

    delays = [call.args[0] for call in mock_sleep.await_args_list]
    assert delays == [0.5, 1.0]
