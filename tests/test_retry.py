"""Tests for the retry module."""

import pytest

from replay_uploader.errors import UploadError
from replay_uploader.retry import RetryError, RetryPolicy, retry


def _transient(name="a.gif"):
    return UploadError(name, "HTTP status 502", transient=True)


class TestRetry:
    def test_succeeds_first_try(self):
        assert retry(lambda: 42, RetryPolicy(max_attempts=3)) == 42

    def test_succeeds_after_transient_failures(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise _transient()
            return "ok"

        result = retry(flaky, RetryPolicy(max_attempts=3), sleep_func=lambda _: None)
        assert result == "ok"
        assert len(attempts) == 3

    def test_exhausts_retries(self):
        def always_fail():
            raise _transient()

        with pytest.raises(RetryError) as exc_info:
            retry(always_fail, RetryPolicy(max_attempts=2), sleep_func=lambda _: None)
        assert exc_info.value.attempts == 2
        assert exc_info.value.filename == "a.gif"
        assert "HTTP status 502" in exc_info.value.reason

    def test_non_transient_error_not_retried(self):
        calls = []

        def rejected():
            calls.append(1)
            raise UploadError("a.gif", "invalid_auth")

        with pytest.raises(UploadError) as exc_info:
            retry(rejected, RetryPolicy(max_attempts=5), sleep_func=lambda _: None)
        assert len(calls) == 1
        assert not isinstance(exc_info.value, RetryError)

    def test_other_exceptions_propagate(self):
        def broken():
            raise ValueError("bug")

        with pytest.raises(ValueError):
            retry(broken, RetryPolicy(max_attempts=3), sleep_func=lambda _: None)

    def test_exponential_backoff(self):
        sleeps = []

        def always_fail():
            raise _transient()

        with pytest.raises(RetryError):
            retry(
                always_fail,
                RetryPolicy(max_attempts=4, base_delay=1.0, multiplier=2.0, jitter=False),
                sleep_func=sleeps.append,
            )
        assert sleeps == [1.0, 2.0, 4.0]

    def test_max_delay_cap(self):
        sleeps = []

        def always_fail():
            raise _transient()

        with pytest.raises(RetryError):
            retry(
                always_fail,
                RetryPolicy(max_attempts=5, base_delay=10.0, max_delay=15.0, jitter=False),
                sleep_func=sleeps.append,
            )
        assert all(s <= 15.0 for s in sleeps)

    def test_jitter_stays_within_half_to_full_delay(self):
        policy = RetryPolicy(base_delay=4.0, jitter=True)
        for _ in range(20):
            assert 2.0 <= policy.delay_for(1) <= 4.0

    def test_passes_args(self):
        def add(a, b):
            return a + b

        assert retry(add, RetryPolicy(max_attempts=1), None, 3, b=4) == 7
