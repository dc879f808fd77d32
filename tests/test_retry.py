"""
Tests for retry logic used by data sources.
"""

import pytest
from recordcompare.retry import (
    exponential_backoff,
    is_transient_error,
    should_retry_http_status,
    RetryError,
)


class TestExponentialBackoff:
    """Test exponential backoff decorator."""

    def test_success_on_first_try(self):
        """Function that succeeds immediately should not retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.1)
        def succeeds():
            call_count[0] += 1
            return "rows"

        assert succeeds() == "rows"
        assert call_count[0] == 1

    def test_retry_then_succeed(self):
        """Function that fails then succeeds should retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01)
        def fails_twice():
            call_count[0] += 1
            if call_count[0] < 3:
                raise ConnectionError("Temporary failure")
            return "rows"

        assert fails_twice() == "rows"
        assert call_count[0] == 3

    def test_all_retries_exhausted(self):
        """Should raise RetryError chained to the last failure."""
        call_count = [0]

        @exponential_backoff(max_retries=2, base_delay=0.01)
        def always_fails():
            call_count[0] += 1
            raise ValueError("Always fails")

        with pytest.raises(RetryError) as exc_info:
            always_fails()

        assert call_count[0] == 3  # Initial + 2 retries
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_zero_retries(self):
        call_count = [0]

        @exponential_backoff(max_retries=0, base_delay=0.01)
        def always_fails():
            call_count[0] += 1
            raise ConnectionError("down")

        with pytest.raises(RetryError):
            always_fails()
        assert call_count[0] == 1

    def test_only_catches_specified_exceptions(self):
        """Should only retry on specified exception types."""
        call_count = [0]

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exceptions=(ConnectionError,)
        )
        def raises_value_error():
            call_count[0] += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            raises_value_error()

        assert call_count[0] == 1

    def test_retry_if_predicate(self):
        """Caught exceptions rejected by retry_if are re-raised at once."""
        call_count = [0]

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            retry_if=lambda e: "locked" in str(e),
        )
        def permission_denied():
            call_count[0] += 1
            raise RuntimeError("permission denied")

        with pytest.raises(RuntimeError, match="permission denied"):
            permission_denied()
        assert call_count[0] == 1

    def test_exponential_delay(self):
        """Delay should increase exponentially."""
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exponential_base=2.0,
            on_retry=on_retry_callback
        )
        def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            always_fails()

        assert delays == [0.01, 0.02, 0.04]

    def test_max_delay_cap(self):
        """Delay should not exceed max_delay."""
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=3,
            base_delay=0.001,
            max_delay=0.002,
            exponential_base=3.0,
            on_retry=on_retry_callback
        )
        def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            always_fails()

        assert all(d <= 0.002 for d in delays)


class TestTransientErrorDetection:
    """Test transient error classification."""

    @pytest.mark.parametrize("message", [
        "Connection refused",
        "Read timed out",
        "database is locked",
        "503 Service Unavailable",
        "server closed the connection unexpectedly",
    ])
    def test_transient(self, message):
        assert is_transient_error(Exception(message))

    @pytest.mark.parametrize("message", [
        "no such table: jobs",
        "password authentication failed",
        "404 Not Found",
    ])
    def test_not_transient(self, message):
        assert not is_transient_error(Exception(message))


class TestHttpStatusRetry:
    """Test HTTP status classification."""

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_retryable(self, status):
        assert should_retry_http_status(status)

    @pytest.mark.parametrize("status", [200, 400, 401, 403, 404])
    def test_not_retryable(self, status):
        assert not should_retry_http_status(status)
